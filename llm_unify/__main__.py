"""Main entry point for the llm-unify CLI."""

from llm_unify.cli.click_app import cli


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
