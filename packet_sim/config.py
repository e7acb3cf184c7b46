"""Simulation and export defaults, overridable through environment variables."""
import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env file if it exists
env_path = Path(__file__).parent.parent / ".env"
if env_path.exists():
    load_dotenv(env_path)

# Typical allocation: MTU (1500) + max headers + alignment, with extra
# headroom for tunneling.
DEFAULT_BUFFER_SIZE = int(os.getenv("PACKET_SIM_BUFFER_SIZE", "2048"))
DEFAULT_PAYLOAD_SIZE = int(os.getenv("PACKET_SIM_PAYLOAD_SIZE", "1000"))

CONTRACT_VERSION = os.getenv("PACKET_SIM_CONTRACT_VERSION", "1.1.0")
KERNEL_VERSION = os.getenv("PACKET_SIM_KERNEL_VERSION", "5.10.8")

LOG_LEVEL = os.getenv("PACKET_SIM_LOG_LEVEL", "WARNING").upper()
