"""
Activity Coach Shared Library
Common models, utilities, and the Gemini client used by the coaching services
"""

__version__ = "0.1.0"

from . import models
from . import utils

__all__ = ["models", "utils"]
