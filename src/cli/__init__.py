"""Main CLI application module."""

from .product_commands import products_app as app


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
