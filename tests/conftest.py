import pytest
import sys
import os
import logging
from datetime import datetime
from typing import Any, Callable, Dict

# Add src and the project root (for main.py) to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

# ==============================================================================
# PYTEST CONFIGURATION & HOOKS
# ==============================================================================

def pytest_configure(config):
    """Configure pytest settings and markers."""
    config.addinivalue_line("markers", "unit: Pure unit tests with no external dependencies.")
    config.addinivalue_line("markers", "integration: Tests that run the full parse, validate and build pipeline.")

@pytest.fixture(scope="session", autouse=True)
def setup_test_environment(pytestconfig):
    """Set up test environment with logging configuration."""
    # Use pytest's log_cli_level if available, otherwise default to INFO
    log_level = pytestconfig.getoption("log_cli_level") or "INFO"
    logging.basicConfig(
        level=log_level.upper(),
        format="[%(asctime)s] [%(levelname)s] [%(name)s:%(lineno)d] - %(message)s",
        stream=sys.stdout,
        force=True,
    )
    logging.info(f"Test logging configured with level: {log_level.upper()}")
    yield

# ==============================================================================
# TEST DATA
# ==============================================================================

@pytest.fixture
def fixed_clock() -> Callable[[], datetime]:
    """A clock pinned to 2024-01-01 12:00 so builder output is deterministic."""
    return lambda: datetime(2024, 1, 1, 12, 0, 0)

@pytest.fixture(scope="session")
def valid_270_x12_string() -> str:
    """Provides a shared, compliant 270 interchange with a single subscriber inquiry."""
    return """
ISA*00*          *00*          *ZZ*SENDER         *ZZ*RECEIVER       *240101*1200*U*00401*000000001*0*P*>~
GS*HS*SENDER*RECEIVER*20240101*1200*1*X*005010X279A1~
ST*270*0001~
BHT*0022*13*10001234*20240101*1200~
HL*1**20*1~
NM1*IL*1*DOE*JOHN****MI*123456789~
EQ*30~
SE*6*0001~
GE*1*1~
IEA*1*000000001~
""".strip()

@pytest.fixture(scope="session")
def valid_270_segments(valid_270_x12_string: str) -> list:
    """The valid 270 interchange as raw segment strings, without delimiters or padding."""
    return [segment.strip() for segment in valid_270_x12_string.split("~") if segment.strip()]

@pytest.fixture
def eligibility_data() -> Dict[str, Any]:
    """Flat subscriber data as it arrives from JSON, ready for Eligibility270DTO.from_array()."""
    return {
        "subscriber_id": "123456789",
        "subscriber_first_name": "JOHN",
        "subscriber_last_name": "DOE",
        "subscriber_date_of_birth": "19800101",
        "subscriber_gender": "M",
        "subscriber_member_id": "MEM001",
        "inquiries": [{"service_type_code": "30"}],
    }
