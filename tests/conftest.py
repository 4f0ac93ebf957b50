"""
HR Retention - Pytest Configuration
Shared fixtures and configuration for all tests
"""

import pytest
import pandas as pd
import numpy as np
from pathlib import Path
import sys

# Add project root to path
ROOT_DIR = Path(__file__).parent.parent
sys.path.insert(0, str(ROOT_DIR))

from config.settings import settings


# ==================== DATA FIXTURES ====================

GENDERS = ["Male", "Female", "Other"]
EXPERIENCE_FLAGS = ["Has relevent experience", "No relevent experience"]
ENROLLMENT = ["Full time course", "Part time course", "no_enrollment"]
EDUCATION = ["Phd", "Masters", "Graduate", "High School", "Primary School"]
MAJORS = ["Arts", "Business Degree", "Humanities", "No Major", "Other", "STEM"]
EXPERIENCE = ["<1", ">20"] + [str(i) for i in range(1, 21)]
COMPANY_SIZES = ["<10", "50-99", "Oct-49", "100-500", "500-999", "1000-4999", "5000-9999", "10000+"]
COMPANY_TYPES = ["Pvt Ltd", "Funded Startup", "Early Stage Startup", "Public Sector", "NGO", "Other"]
LAST_NEW_JOB = ["1", "2", "3", "4", ">4", "never"]


def make_hr_frame(n_rows: int = 150, seed: int = 7, missing_rate: float = 0.1) -> pd.DataFrame:
    """Raw HR table shaped like HRRetention_train, with gaps sprinkled in."""
    rng = np.random.default_rng(seed)

    cdi = rng.uniform(0.45, 0.95, n_rows).round(3)
    df = pd.DataFrame({
        "enrollee_id": np.arange(1000, 1000 + n_rows),
        "city": [f"city_{c}" for c in rng.choice([16, 21, 103, 114, 160], n_rows)],
        "city_development_index": cdi,
        "gender": rng.choice(GENDERS, n_rows, p=[0.6, 0.3, 0.1]),
        "relevent_experience": rng.choice(EXPERIENCE_FLAGS, n_rows),
        "enrolled_university": rng.choice(ENROLLMENT, n_rows),
        "education_level": rng.choice(EDUCATION, n_rows),
        "major_discipline": rng.choice(MAJORS, n_rows),
        "experience": rng.choice(EXPERIENCE, n_rows, p=[0.25, 0.25] + [0.5 / 20] * 20),
        "company_size": rng.choice(COMPANY_SIZES, n_rows),
        "company_type": rng.choice(COMPANY_TYPES, n_rows),
        "last_new_job": rng.choice(LAST_NEW_JOB, n_rows, p=[0.1, 0.1, 0.1, 0.1, 0.3, 0.3]),
        "training_hours": rng.integers(1, 300, n_rows),
        "target": (cdi + rng.normal(0, 0.1, n_rows) < 0.7).astype(int),
    })

    # always keep enough observed cells for every column
    for col in ["gender", "major_discipline", "company_size", "company_type", "education_level"]:
        mask = rng.random(n_rows) < missing_rate
        df.loc[mask, col] = np.nan

    return df


@pytest.fixture
def hr_raw_df():
    """Raw (string-coded) HR table with missing values"""
    return make_hr_frame()


@pytest.fixture
def hr_test_raw_df():
    """Second, independent HR partition"""
    return make_hr_frame(n_rows=90, seed=11)


@pytest.fixture
def scenario_rows():
    """Rows with the documented encoding examples"""
    base = make_hr_frame(n_rows=2, seed=3, missing_rate=0.0)
    base.loc[0, ["gender", "relevent_experience", "company_size", "city", "enrolled_university"]] = [
        "Female", "Has relevent experience", "Oct-49", "city_103", "no_enrollment"
    ]
    base.loc[1, ["gender", "relevent_experience", "company_size", "city", "enrolled_university"]] = [
        "Male", "No relevent experience", "10000+", "city_21", "Full time course"
    ]
    return base


@pytest.fixture
def numeric_df_with_missing():
    """Already-encoded numeric table with gaps"""
    rng = np.random.default_rng(0)
    n = 80
    x1 = rng.normal(0, 1, n)
    x2 = x1 * 2 + rng.normal(0, 0.5, n)
    cat = rng.integers(0, 3, n).astype(float)
    df = pd.DataFrame({"x1": x1, "x2": x2, "cat": cat, "target": rng.integers(0, 2, n)})
    df.loc[rng.random(n) < 0.2, "x2"] = np.nan
    df.loc[rng.random(n) < 0.2, "cat"] = np.nan
    return df


# ==================== FILE FIXTURES ====================

@pytest.fixture
def hr_csv_files(tmp_path, hr_raw_df, hr_test_raw_df):
    """Train/test CSV files written with "NA" for missing cells"""
    train_path = tmp_path / "HRRetention_train.csv"
    test_path = tmp_path / "HRRetention_test.csv"
    hr_raw_df.to_csv(train_path, index=False, na_rep="NA")
    hr_test_raw_df.to_csv(test_path, index=False, na_rep="NA")
    return train_path, test_path


@pytest.fixture
def write_text(tmp_path):
    """Write raw text to a temp file and return its path"""
    def _write(content: str, name: str = "table.csv", encoding: str = "utf-8") -> Path:
        path = tmp_path / name
        path.write_text(content, encoding=encoding)
        return path
    return _write


# ==================== CONFIGURATION FIXTURES ====================

@pytest.fixture
def test_settings(tmp_path):
    """Test settings"""
    original = (settings.TEST_MODE, settings.REPORTS_PATH)

    settings.TEST_MODE = True
    settings.REPORTS_PATH = tmp_path / "reports"

    yield settings

    # Restore
    settings.TEST_MODE, settings.REPORTS_PATH = original


# ==================== PYTEST CONFIGURATION ====================

def pytest_configure(config):
    """Configure pytest"""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "e2e: marks tests as end-to-end tests"
    )
