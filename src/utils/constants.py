# utils/constants.py

# Schema constants used by data_loader, cleaning and others
DATE_COL = "date"
TIME_COL = "time"
TIMESTAMP_COL = "timestamp"
ARTICLE_COL = "article"
QTY_COL = "quantity"
PRICE_COL = "unit_price"
FILLED_COL = "filled"

SALES_REQUIRED_COLUMNS = [DATE_COL, ARTICLE_COL, QTY_COL, PRICE_COL]
WEATHER_REQUIRED_COLUMNS = [DATE_COL]

NA_VALUES = ["", "NA", "N/A", "na", "n/a", "NULL", "null", "-", "--"]

# Weather cleaning policy (Meteostat daily export column names)
WEATHER_ZERO_FILL = ["snow", "wdir", "wspd", "wpgt", "pres"]
WEATHER_DROP = ["tsun"]
EXOG_COLS = ["tavg", "wspd", "pres"]

# Price parsing policy
PRICE_DECIMAL = ","
PRICE_CURRENCY = "€"
PRICE_AGGREGATION = "max"
PRICE_AGGREGATIONS = ["max", "min", "mean", "median", "last"]

# Feature engineering constants
DAY_ORDER = [
    "monday", "tuesday", "wednesday", "thursday",
    "friday", "saturday", "sunday",
]

DECOMPOSITION_PERIODS = [7, 365]
INTERVAL_LEVELS = [80, 95]
MIN_TRAIN_DAYS = 28
MAXITER = 300
TOP_N_PRODUCTS = 5
