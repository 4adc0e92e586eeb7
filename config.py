import os

from raster.pipeline import DEFAULT_PARAMETER, MAX_MEDIAN_RADIUS, MAX_SIGMA

class Config:
    APP_ROOT = os.path.dirname(os.path.abspath(__file__))
    STATIC_DIR = os.environ.get("RASTERFILTER_STATIC_DIR", os.path.join(APP_ROOT, "static"))
    UPLOAD_DIR = os.path.join(STATIC_DIR, "uploads")
    RESULT_DIR = os.path.join(STATIC_DIR, "results")

    MAX_CONTENT_LENGTH = 10 * 1024 * 1024  # 10MB
    ALLOWED_EXTS = {"png", "jpg", "jpeg"}

    LOG_LEVEL = os.environ.get("RASTERFILTER_LOG_LEVEL", "INFO")

    # filter defaults / limits
    DEFAULT_PARAMETER = DEFAULT_PARAMETER  # sigma or radius when none is given
    MAX_SIGMA = MAX_SIGMA
    MAX_MEDIAN_RADIUS = MAX_MEDIAN_RADIUS
    MEDIAN_WORKERS = int(os.environ.get("RASTERFILTER_MEDIAN_WORKERS", "1"))
