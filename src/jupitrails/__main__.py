"""Entry point for running the CLI as module: python -m jupitrails"""

# Load .env file before importing anything else
from dotenv import load_dotenv
load_dotenv()

from jupitrails.cli import main

if __name__ == "__main__":
    main()
