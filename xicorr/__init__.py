"""
xicorr: FFT-based transforms of distorted power spectra P(k, mu) to correlation functions xi(r, mu)
"""

from .info import __version__
from .PowerFunction import (PowerFunction, CallablePower, DistortionFunction,
                            CallableDistortion, RedshiftSpaceDistortion)
from .TabulatedPower import TabulatedPower, PowerLawExtrapolator, load_tabulated_power
from .MultipoleTransform import MultipoleTransform
from .DistortedPowerCorrelation import DistortedPowerCorrelation
from .DistortedPowerCorrelationFft import DistortedPowerCorrelationFft
from .transform_config import TransformConfig
from .core.CacheManager import CacheManager

__all__ = ["PowerFunction", "CallablePower", "DistortionFunction", "CallableDistortion",
           "RedshiftSpaceDistortion", "TabulatedPower", "PowerLawExtrapolator",
           "load_tabulated_power", "MultipoleTransform", "DistortedPowerCorrelation",
           "DistortedPowerCorrelationFft", "TransformConfig", "CacheManager",
           "__version__"]
