import os
from dotenv import load_dotenv

load_dotenv()


def _int_env(name, default):
    raw = os.getenv(name)
    if raw is None or raw.strip() == '':
        return default
    try:
        return int(raw)
    except ValueError:
        return default


# Growth chart x-axis spans weeks 0..GROWTH_CHART_MAX_WEEKS
GROWTH_CHART_MAX_WEEKS = _int_env('GROWTH_CHART_MAX_WEEKS', 90)

# Uniformity band: +/- this percentage around the sample mean
UNIFORMITY_TOLERANCE_PERCENT = _int_env('UNIFORMITY_TOLERANCE_PERCENT', 10)
MIN_BODY_WEIGHT_SAMPLES = _int_env('MIN_BODY_WEIGHT_SAMPLES', 2)

CHART_DATE_FORMAT = os.getenv('CHART_DATE_FORMAT', '%d %b')

LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
LOG_DIR = os.getenv('LOG_DIR') or None
