def main() -> None:
    """Entry point for the application.

    Starts the HTTP server that accepts and serves game bundles.
    """
    from game_launcher.api.main import main as api_main

    api_main()
