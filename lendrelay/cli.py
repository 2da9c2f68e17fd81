#!filepath: lendrelay/cli.py
from datetime import datetime, timezone
from pathlib import Path

import typer
from eth_account import Account
from rich import print

from lendrelay import AppConfig, __version__
from lendrelay.utils.logger import init_logging

app = typer.Typer(help="LendRelay delegated-signing relay CLI")

ENV_TEMPLATE = """# Relayer configuration
# Generated on: {generated}

# Blockchain connection
RPC_URL=http://127.0.0.1:8545
CHAIN_ID=31337

# Relayer wallet (never commit this file)
RELAYER_PRIVATE_KEY={private_key}

# Contract addresses (update after deployment)
LENDING_POOL_ADDRESS=0x0000000000000000000000000000000000000000
DUSD_ADDRESS=0x0000000000000000000000000000000000000000

# Server
PORT=3001
"""

ENV_EXAMPLE = """# Relayer configuration template
RPC_URL=http://127.0.0.1:8545
CHAIN_ID=31337
RELAYER_PRIVATE_KEY=your_relayer_private_key_here
LENDING_POOL_ADDRESS=0x0000000000000000000000000000000000000000
DUSD_ADDRESS=0x0000000000000000000000000000000000000000
PORT=3001
"""


@app.command()
def version():
    print(f"v{__version__}")


@app.command()
def serve(config: str = typer.Option(None, help="YAML config path")):
    """
    Run the relay gateway (Flask development server).
    """
    from lendrelay.api.app import create_app

    cfg = AppConfig.load(path=config)
    init_logging(cfg.log)

    print(f"[green]Relay listening on {cfg.relay.host}:{cfg.relay.port} "
          f"(executor={cfg.relay.executor}, chain_id={cfg.relay.chain_id})[/green]")
    create_app(config=cfg).run(host=cfg.relay.host, port=cfg.relay.port)


@app.command()
def nonce(address: str, config: str = typer.Option(None, help="YAML config path")):
    """
    Current delegated-action nonce of ADDRESS on the configured executor.
    """
    from lendrelay.relay.service import build_service

    service = build_service(AppConfig.load(path=config))
    print(f"[blue]{address}[/blue] nonce = {service.nonce(address)['nonce']}")


@app.command("new-key")
def new_key(
    out_dir: Path = typer.Option(Path("."), help="directory for .env and .env.example"),
    force: bool = typer.Option(False, help="overwrite an existing .env"),
):
    """
    Generate a fresh relay key and write .env / .env.example.
    """
    env_path = out_dir / ".env"
    if env_path.exists() and not force:
        print(f"[red]{env_path} already exists (use --force to overwrite)[/red]")
        raise typer.Exit(code=1)

    account = Account.create()
    out_dir.mkdir(parents=True, exist_ok=True)
    env_path.write_text(
        ENV_TEMPLATE.format(
            generated=datetime.now(timezone.utc).isoformat(),
            private_key="0x" + bytes(account.key).hex(),
        ),
        encoding="utf-8",
    )
    (out_dir / ".env.example").write_text(ENV_EXAMPLE, encoding="utf-8")

    print(f"[green]New relayer address: {account.address}[/green]")
    print(f"[green]Wrote {env_path} and {out_dir / '.env.example'}[/green]")
    print("[yellow]Fund the relayer address with gas before submitting to a chain.[/yellow]")


if __name__ == "__main__":
    app()

# python -m lendrelay.cli serve
