"""Entry point for running soluna as a module: python -m soluna"""

from soluna.cli.commands import app

if __name__ == "__main__":
    app()
