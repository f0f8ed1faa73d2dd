"""Moments of squashed control signals for Gaussian state distributions."""
from . import concatenation
from . import controllers
from . import core
from . import saturation
from .concatenation import SquashedController
from .concatenation import concat
from .controllers import LinearPolicy
from .controllers import linear_controller
from .core import ControllerMoments
from .core import DimensionMismatchError
from .core import InvalidCovarianceError
from .core import MomentJacobians
from .core import SaturationMoments
from .saturation import no_saturation
from .saturation import saturation_for
from .saturation import sine_saturation

__all__ = [
    "ControllerMoments",
    "DimensionMismatchError",
    "InvalidCovarianceError",
    "LinearPolicy",
    "MomentJacobians",
    "SaturationMoments",
    "SquashedController",
    "concat",
    "concatenation",
    "controllers",
    "core",
    "linear_controller",
    "no_saturation",
    "saturation",
    "saturation_for",
    "sine_saturation",
]
