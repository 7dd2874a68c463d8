"""Config file."""
from typing import Annotated
from urllib.parse import quote_plus

from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from actions_indexer.app.domain.models import TransactionActionsConfig

_DEFAULT_UNISWAP_V3_FACTORY = "0x1F98431c8aD98523631AE4a59f267346ea31F984"
_DEFAULT_UNISWAP_V3_NFT_POSITION_MANAGER = "0xC36442b4a4522E871399CD717aBDD847Ab11FE88"
_DEFAULT_UNISWAP_V3_CHAIN_IDS = (1, 5, 10, 137, 8453, 84531)
_DEFAULT_ETHER_SYMBOL_CHAIN_IDS = (1, 5, 10)
_DEFAULT_GOLEMBASE_CHAIN_ID = 1337

ChainIds = Annotated[tuple[int, ...], NoDecode]


class Settings(BaseSettings):
    """Application settings."""

    # PROJECT
    project_name: str = Field(..., alias="PROJECT_NAME")

    # DATABASE
    postgres_user: str = Field(..., alias="POSTGRES_USER")
    postgres_password: SecretStr = Field(..., alias="POSTGRES_PASSWORD")
    postgres_server: str = Field(..., alias="POSTGRES_SERVER")
    postgres_port: int = Field(..., alias="POSTGRES_PORT")
    postgres_db: str = Field(..., alias="POSTGRES_DB")
    database_url: str | None = None
    sync_database_url: str | None = None

    # RPC
    eth_rpc_url: str = Field("http://localhost:8545", alias="ETH_RPC_URL")
    token_functions_reader_max_retries: int = Field(
        3, alias="TOKEN_FUNCTIONS_READER_MAX_RETRIES", ge=1
    )

    # TRANSACTION ACTIONS
    transaction_actions_enabled: bool = Field(True, alias="INDEXER_TRANSACTION_ACTIONS_ENABLE")
    aave_v3_pool: str | None = Field(None, alias="INDEXER_TRANSACTION_ACTIONS_AAVE_V3_POOL")
    uniswap_v3_factory: str | None = Field(
        _DEFAULT_UNISWAP_V3_FACTORY, alias="INDEXER_TRANSACTION_ACTIONS_UNISWAP_V3_FACTORY"
    )
    uniswap_v3_nft_position_manager: str | None = Field(
        _DEFAULT_UNISWAP_V3_NFT_POSITION_MANAGER,
        alias="INDEXER_TRANSACTION_ACTIONS_UNISWAP_V3_NFT_POSITION_MANAGER",
    )
    uniswap_v3_chain_ids: ChainIds = Field(
        _DEFAULT_UNISWAP_V3_CHAIN_IDS, alias="INDEXER_TRANSACTION_ACTIONS_UNISWAP_V3_CHAIN_IDS"
    )
    ether_symbol_chain_ids: ChainIds = Field(
        _DEFAULT_ETHER_SYMBOL_CHAIN_IDS, alias="INDEXER_TRANSACTION_ACTIONS_ETHER_SYMBOL_CHAIN_IDS"
    )
    golembase_chain_id: int = Field(
        _DEFAULT_GOLEMBASE_CHAIN_ID, alias="INDEXER_TRANSACTION_ACTIONS_GOLEMBASE_CHAIN_ID"
    )

    @field_validator("uniswap_v3_chain_ids", "ether_symbol_chain_ids", mode="before")
    @classmethod
    def split_chain_ids(cls, value):
        # "1,10,137" in env files
        if isinstance(value, str):
            return tuple(int(part) for part in value.split(",") if part.strip())
        if isinstance(value, int):
            return (value,)
        return value

    @field_validator("aave_v3_pool", "uniswap_v3_factory", "uniswap_v3_nft_position_manager", mode="before")
    @classmethod
    def normalize_address(cls, value):
        if value is None:
            return None
        value = str(value).strip().lower()
        return value or None

    @model_validator(mode="after")
    def assemble_db_urls(self) -> "Settings":
        user = quote_plus(self.postgres_user)
        password = quote_plus(self.postgres_password.get_secret_value())
        host = self.postgres_server
        port = self.postgres_port
        db = self.postgres_db

        if not self.database_url:
            self.database_url = f"postgresql+asyncpg://{user}:{password}@{host}:{port}/{db}"

        if not self.sync_database_url:
            self.sync_database_url = f"postgresql://{user}:{password}@{host}:{port}/{db}"

        return self

    def rpc_url(self, chain_id: int) -> str:
        """JSON-RPC endpoint used for contract reads on ``chain_id``."""
        return self.eth_rpc_url

    def transaction_actions_config(self) -> TransactionActionsConfig:
        return TransactionActionsConfig(
            enabled=self.transaction_actions_enabled,
            aave_v3_pool=self.aave_v3_pool,
            uniswap_v3_factory=self.uniswap_v3_factory,
            uniswap_v3_nft_position_manager=self.uniswap_v3_nft_position_manager,
            uniswap_v3_chain_ids=frozenset(self.uniswap_v3_chain_ids),
            ether_symbol_chain_ids=frozenset(self.ether_symbol_chain_ids),
            golembase_chain_id=self.golembase_chain_id,
            max_retries=self.token_functions_reader_max_retries,
        )

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


settings: Settings = Settings()
