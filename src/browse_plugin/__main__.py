"""Allow running as: python -m browse_plugin"""

from browse_plugin.cli.main import app

if __name__ == "__main__":
    app()
