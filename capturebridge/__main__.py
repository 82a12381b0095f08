"""Module entry point for the capturebridge CLI."""

from .main import main

if __name__ == "__main__":
    main()
