from __future__ import annotations

# 4-byte selectors of the public getters read during resolution
SYMBOL_METHOD_ID = "95d89b41"
DECIMALS_METHOD_ID = "313ce567"
TOKEN0_METHOD_ID = "0dfe1681"
TOKEN1_METHOD_ID = "d21220a7"
FEE_METHOD_ID = "ddca3f43"
GET_POOL_METHOD_ID = "1698ee82"

METHOD_NAMES: dict[str, str] = {
    SYMBOL_METHOD_ID: "symbol",
    DECIMALS_METHOD_ID: "decimals",
    TOKEN0_METHOD_ID: "token0",
    TOKEN1_METHOD_ID: "token1",
    FEE_METHOD_ID: "fee",
    GET_POOL_METHOD_ID: "getPool",
}

ERC20_ABI = [
    {"name": "symbol", "type": "function", "stateMutability": "view", "inputs": [], "outputs": [{"name": "", "type": "string"}]},
    {"name": "decimals", "type": "function", "stateMutability": "view", "inputs": [], "outputs": [{"name": "", "type": "uint8"}]},
]

UNISWAP_V3_POOL_ABI = [
    {"name": "fee", "type": "function", "stateMutability": "view", "inputs": [], "outputs": [{"name": "", "type": "uint24"}]},
    {"name": "token0", "type": "function", "stateMutability": "view", "inputs": [], "outputs": [{"name": "", "type": "address"}]},
    {"name": "token1", "type": "function", "stateMutability": "view", "inputs": [], "outputs": [{"name": "", "type": "address"}]},
]

UNISWAP_V3_FACTORY_ABI = [
    {
        "name": "getPool",
        "type": "function",
        "stateMutability": "view",
        "inputs": [
            {"name": "", "type": "address"},
            {"name": "", "type": "address"},
            {"name": "", "type": "uint24"},
        ],
        "outputs": [{"name": "", "type": "address"}],
    },
]
