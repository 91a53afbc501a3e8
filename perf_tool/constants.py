"""
Page Performance Tool - Constants Configuration

This module centralizes all configuration constants used throughout the tool.
Each constant is documented with its purpose and acceptable value ranges.
"""

# ==============================================================================
# TIMING ENTRIES
# ==============================================================================

# Performance entry types the correlator subscribes to
ENTRY_TYPE_NAVIGATION = "navigation"
ENTRY_TYPE_PAINT = "paint"
ENTRY_TYPE_MARK = "mark"

# Name of the paint entry used as the end of the "rendering" stage
FIRST_CONTENTFUL_PAINT = "first-contentful-paint"

# Name of the mark recorded when the application boot script starts executing
# Override with the PERF_TOOL_BOOT_MARK environment variable
BOOT_MARK_NAME = "discourse-boot-js"


# ==============================================================================
# STAGES
# ==============================================================================

STAGE_DNS = "dns"
STAGE_CONNECT = "connect"
STAGE_WAITING = "waiting"
STAGE_LOADING = "loading"
STAGE_INITIALIZING = "initializing"
STAGE_RENDERING = "rendering"
STAGE_INIT_RENDERING = "init + rendering"

# Column order used by the summary table, the CSV export and the graph UI
DEFAULT_COLUMNS = [
    STAGE_DNS,
    STAGE_CONNECT,
    STAGE_WAITING,
    STAGE_LOADING,
    STAGE_INITIALIZING,
    STAGE_RENDERING,
    STAGE_INIT_RENDERING,
]

# Stage preselected in the graph UI
DEFAULT_GRAPH_STAGE = STAGE_INIT_RENDERING


# ==============================================================================
# PERSISTENCE
# ==============================================================================

# Key under which the whole store is saved as one JSON blob
STORE_KEY = "discourse-performance-tool-data"

# Default file used by the CLI and dashboard when PERF_TOOL_STORE is unset
DEFAULT_STORE_PATH = "perf-tool-data.json"


# ==============================================================================
# RUN CONTROL
# ==============================================================================

# Delay before the first measured reload of a run (milliseconds)
# Gives the operator time to close dev tools and stop interacting with the page
RUN_START_DELAY_MS = 5000


# ==============================================================================
# STATISTICS & OUTLIERS
# ==============================================================================

# First quartile (Q1) position as a fraction of the sample size
# Index is floor(Q1_QUANTILE * n) on the sorted values
Q1_QUANTILE = 0.25

# Third quartile (Q3) position as a fraction of the sample size
# Index is ceil(Q3_QUANTILE * n) on the sorted values
Q3_QUANTILE = 0.75

# IQR multiplier for outlier detection using Tukey's method
# Outliers are values outside [Q1 - k*IQR, Q3 + k*IQR]
IQR_OUTLIER_MULTIPLIER = 1.5

# Number of buckets in the histogram view
HISTOGRAM_BUCKET_COUNT = 30


# ==============================================================================
# OPERATOR OUTPUT
# ==============================================================================

# Prefix for every console message
LOG_PREFIX = "[perf-tool] "

# Decimal places of the per-page-load stage table
PAGE_LOAD_PRECISION = 1

# Decimal places of each CSV value
CSV_PRECISION = 2

# File name offered for CSV downloads
CSV_FILENAME = "discourse-performance-tool-data.csv"


# ==============================================================================
# UI / CHART CONSTANTS
# ==============================================================================

# Chart.js CDN URL for the graph page
CHARTJS_CDN_URL = "https://cdn.jsdelivr.net/npm/chart.js@4.4.1/dist/chart.umd.min.js"

# Boxplot plugin for Chart.js
CHARTJS_BOXPLOT_CDN_URL = (
    "https://cdn.jsdelivr.net/npm/@sgratzl/chartjs-chart-boxplot@4.2.7/build/index.umd.min.js"
)

# Boxplot fill and border colours
BOXPLOT_BACKGROUND_COLOR = "#0a84a540"
BOXPLOT_BORDER_COLOR = "#0a84a5"
BOXPLOT_OUTLIER_COLOR = "#999999"

# Histogram dataset colours, cycled per label
CHART_COLORS = [
    "#0a84a5",
    "#f6c85f",
    "#6f4d7c",
    "#9cd766",
    "#ca472f",
    "#ff9f56",
    "#8cddd0",
]

# Minimum chart height in pixels
CHART_MIN_HEIGHT = 400

# Height per label for horizontal boxplots
BOXPLOT_HEIGHT_PER_LABEL = 100

# Footer shown under every chart
CHART_FOOTER = "Generated by discourse-performance-tool"
CHART_FOOTER_OUTLIERS = "Discarded outliers more than 1.5 IQR from quartiles"


# ==============================================================================
# EXIT CODES
# ==============================================================================

# Exit code for successful execution
EXIT_SUCCESS = 0

# Exit code for an operation rejected by a precondition (duplicate label, ...)
EXIT_FAILURE = 1

# Exit code for parsing/input errors
EXIT_PARSE_ERROR = 2
