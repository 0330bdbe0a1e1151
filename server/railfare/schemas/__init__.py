"""Pydantic schemas for request/response validation."""

from .booking import *  # noqa: F403
from .common import *  # noqa: F403
from .fare import *  # noqa: F403
from .payment import *  # noqa: F403
from .pnr import *  # noqa: F403
from .quote import *  # noqa: F403
