import asyncio
import inspect
import typer
import logging
from dotenv import load_dotenv
from InquirerPy import inquirer
from actions_indexer.app.interface.tasks import TASKS


load_dotenv()

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
)

app = typer.Typer()
indexer_app = typer.Typer(help="cli for deriving transaction actions from indexed logs.")
app.add_typer(indexer_app, name="indexer")

_KEEP_EXISTING = "keep"


@indexer_app.command("run")
def run(
    backend: str = typer.Option("sqlalchemy", help="Storage backend: sqlalchemy or memory (dry run)."),
) -> None:
    task_name = inquirer.select(
        message="Select task:",
        choices=list(TASKS.keys()),
        pointer="❯",
        instruction="Use ↑/↓ to move, Enter to select",
    ).execute()
    chain_id = int(
        inquirer.text(
            message="Chain ID (e.g. 1 for Ethereum mainnet):",
            default="1",
        ).execute()
    )
    from_block = inquirer.text(
        message="From block (inclusive):",
        default="earliest",
    ).execute()
    to_block = inquirer.text(
        message="To block (inclusive):",
        default="latest",
    ).execute()

    task = TASKS[task_name]

    kwargs: dict[str, object] = {"chain_id": chain_id}

    params = inspect.signature(task).parameters

    if "from_block" in params:
        kwargs["from_block"] = from_block
    if "to_block" in params:
        kwargs["to_block"] = to_block
    if "backend" in params:
        kwargs["backend"] = backend

    if "protocols_to_rewrite" in params:
        protocols = inquirer.text(
            message=(
                f"Protocols to rewrite ('{_KEEP_EXISTING}' = keep existing actions, "
                "empty = all, or e.g. aave_v3,uniswap_v3,golembase):"
            ),
            default=_KEEP_EXISTING,
        ).execute()
        kwargs["protocols_to_rewrite"] = None if protocols.strip().lower() == _KEEP_EXISTING else protocols

    asyncio.run(task(**kwargs))  # type: ignore


if __name__ == "__main__":
    typer.echo("\n  --- Transaction Actions Indexer CLI ---\n")
    app()
