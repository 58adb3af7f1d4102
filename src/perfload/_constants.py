"""Shared constants for perfload."""

# Spreadsheet artifacts published by the performance job, in upload order.
BURN_IN_FILE = "burn_in_analysis.xlsx"
REGRESSION_FILE = "regression_dolphin.xlsx"
REGRESSION_BURN_IN_FILE = "regression_dolphin_burn_in.xlsx"
REQUIRED_FILES = (BURN_IN_FILE, REGRESSION_FILE, REGRESSION_BURN_IN_FILE)

# Burn-in workbooks keep their data on a single sheet under a fixed scenario.
BURN_IN_SHEET = "results"
BURN_IN_SCENARIO = "burn_in"

TABLE_TEST_SCENARIO = "TEST_SCENARIO"
TABLE_TEST_RUN = "TEST_RUN"
TABLE_TEST_RESULT = "TEST_RESULT"

# Rows per executemany() flush when writing TEST_RESULT.
BATCH_SIZE = 100

# VARCHAR(255) columns on TEST_RUN
MAX_DEPLOYMENT_LENGTH = 255
MAX_IMAGE_LENGTH = 255
MAX_BUILD_NUMBER_LENGTH = 255
MAX_JOB_NAME_LENGTH = 255

# Unified output directory -- single top-level directory for all perfload outputs.
# Contains:
#   downloads/ -- spreadsheet artifacts fetched from Jenkins
#   perf.db    -- default SQLite store
DEFAULT_OUTPUT_DIR = "./perfload-output"
