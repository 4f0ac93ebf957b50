# config/constants.py
"""
HR Retention - Column Schema

Fixed per-column lookup tables used by the categorical encoder, the
column → imputation method assignment and the model feature list.

The lookup tables are exhaustive *as used in the reference analysis*,
including their gaps (e.g. `enrolled_university` has no code for
"no_enrollment", `last_new_job` has no codes for "1".."4"). Widening a
table changes every downstream number; the gaps are listed in
KNOWN_ENCODING_GAPS so they surface in the encoding report instead of
being completed silently.
"""

from __future__ import annotations

import re
from types import MappingProxyType
from typing import Dict, List, Literal, Mapping, Tuple

__all__ = [
    "MISSING_TOKENS",
    "ID_COLUMN",
    "TARGET_COLUMN",
    "IMPUTATION_INDEX_COLUMN",
    "ROW_ID_COLUMN",
    "SCHEMA_COLUMNS",
    "CATEGORICAL_CODES",
    "COLUMN_ALIASES",
    "CITY_COLUMN",
    "CITY_PATTERN",
    "KNOWN_ENCODING_GAPS",
    "ImputationMethod",
    "IMPUTATION_METHODS",
    "IMPUTATION_METHOD_MAP",
    "IMPUTATION_EXCLUDED_COLUMNS",
    "FEATURE_COLUMNS",
]


# ═══════════════════════════════════════════════════════════════════════════
# Input conventions
# ═══════════════════════════════════════════════════════════════════════════

MISSING_TOKENS: Tuple[str, ...] = ("", "NA")

ID_COLUMN = "enrollee_id"
TARGET_COLUMN = "target"

# long-format bookkeeping (mice convention)
IMPUTATION_INDEX_COLUMN = ".imp"
ROW_ID_COLUMN = ".id"


# ═══════════════════════════════════════════════════════════════════════════
# Schema (column order drives the imputation visit sequence)
# ═══════════════════════════════════════════════════════════════════════════

SCHEMA_COLUMNS: Tuple[str, ...] = (
    "enrollee_id",
    "city",
    "city_development_index",
    "gender",
    "relevent_experience",
    "enrolled_university",
    "education_level",
    "major_discipline",
    "experience",
    "company_size",
    "company_type",
    "last_new_job",
    "training_hours",
    "target",
)


def _frozen(table: Dict[str, int]) -> Mapping[str, int]:
    return MappingProxyType(dict(table))


CATEGORICAL_CODES: Mapping[str, Mapping[str, int]] = MappingProxyType({
    "gender": _frozen({
        "Male": 0,
        "Female": 1,
        "Other": 2,
    }),
    "relevent_experience": _frozen({
        "Has relevent experience": 0,
        "No relevent experience": 1,
        # corrected spelling, same codes
        "Has relevant experience": 0,
        "No relevant experience": 1,
    }),
    "enrolled_university": _frozen({
        "Full time course": 0,
        "Part time course": 1,
    }),
    "education_level": _frozen({
        "Phd": 0,
        "Masters": 1,
        "Graduate": 2,
        "High School": 3,
        "Primary School": 4,
    }),
    "major_discipline": _frozen({
        "Arts": 0,
        "Business Degree": 1,
        "Humanities": 2,
        "No Major": 3,
        "Other": 4,
        "STEM": 5,
    }),
    "experience": _frozen({
        "<1": 0,
        ">20": 21,
    }),
    # "Oct-49" is the 10-49 band after a spreadsheet date conversion; it keeps
    # the slot the reference coding gave it, after 50-99.
    "company_size": _frozen({
        "<10": 0,
        "50-99": 1,
        "Oct-49": 2,
        "100-500": 3,
        "500-999": 4,
        "1000-4999": 5,
        "5000-9999": 6,
        "10000+": 7,
    }),
    "company_type": _frozen({
        "Pvt Ltd": 0,
        "Funded Startup": 1,
        "Early Stage Startup": 2,
        "Public Sector": 3,
        "NGO": 4,
        "Other": 5,
    }),
    "last_new_job": _frozen({
        ">4": 5,
        "never": 6,
    }),
})

# Alternate column spellings accepted on input.
COLUMN_ALIASES: Mapping[str, str] = MappingProxyType({
    "relevant_experience": "relevent_experience",
})

CITY_COLUMN = "city"
CITY_PATTERN = re.compile(r"^city_(\d+)$")

# Real categories the lookup tables do not cover. Preserved on purpose.
KNOWN_ENCODING_GAPS: Mapping[str, Tuple[str, ...]] = MappingProxyType({
    "enrolled_university": ("no_enrollment",),
    "experience": tuple(str(i) for i in range(1, 21)),
    "last_new_job": ("1", "2", "3", "4"),
    "company_size": ("10/49",),
})


# ═══════════════════════════════════════════════════════════════════════════
# Imputation
# ═══════════════════════════════════════════════════════════════════════════

ImputationMethod = Literal["pmm", "cart"]
IMPUTATION_METHODS: Tuple[str, ...] = ("pmm", "cart")

# Ordered by SCHEMA_COLUMNS; nominal codes use cart, ordinal/continuous pmm.
IMPUTATION_METHOD_MAP: Mapping[str, str] = MappingProxyType({
    "city": "pmm",
    "city_development_index": "pmm",
    "gender": "cart",
    "relevent_experience": "cart",
    "enrolled_university": "cart",
    "education_level": "pmm",
    "major_discipline": "cart",
    "experience": "pmm",
    "company_size": "pmm",
    "company_type": "cart",
    "last_new_job": "pmm",
    "training_hours": "pmm",
})

# Never imputed and never used as imputation predictors.
IMPUTATION_EXCLUDED_COLUMNS: Tuple[str, ...] = (ID_COLUMN, TARGET_COLUMN)


# ═══════════════════════════════════════════════════════════════════════════
# Modeling
# ═══════════════════════════════════════════════════════════════════════════

FEATURE_COLUMNS: List[str] = [
    "city",
    "city_development_index",
    "gender",
    "relevent_experience",
    "enrolled_university",
    "education_level",
    "major_discipline",
    "experience",
    "company_size",
    "company_type",
    "last_new_job",
    "training_hours",
]
