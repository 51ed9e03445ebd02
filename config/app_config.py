"""Centralised application settings (dotenv + env overrides)."""
from __future__ import annotations
import os
from pathlib import Path
from dotenv import load_dotenv

ROOT = Path(__file__).parents[1]
load_dotenv(ROOT / ".env", override=False)

class settings:                            # pylint: disable=too-few-public-methods
    HL7_HOST         = os.getenv("HL7_HOST", "localhost")
    HL7_PORT         = int(os.getenv("HL7_PORT", 2575))
    HL7_URL          = os.getenv("HL7_URL", "http://localhost:8080/hl7")
    HL7_TIMEOUT_MS   = int(os.getenv("HL7_TIMEOUT_MS", 10000))
    HL7_CONTENT_TYPE = os.getenv("HL7_CONTENT_TYPE", "application/hl7-v2")
    HL7_PACING_MS    = int(os.getenv("HL7_PACING_MS", 100))
    HL7_PROFILE_PATH = os.getenv("HL7_PROFILE_PATH",
                                 str(Path.home() / ".hl7bench" / "servers.json"))
    LOG_LEVEL        = os.getenv("LOG_LEVEL", "INFO").upper()
