import os
from dotenv import load_dotenv

load_dotenv()
APP_TITLE = os.getenv("APP_TITLE", "Provably Fair API")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
