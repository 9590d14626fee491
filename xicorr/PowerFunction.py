'''
	Function objects consumed by the transform and correlation engines.

	A PowerFunction maps a wavenumber k to P(k) and a DistortionFunction maps
	(k, mu) to a multiplicative factor D(k, mu), where mu is the cosine of the
	angle between k and the line of sight. Both are plain callables, so any
	function or lambda can be used through the Callable* adapters.
'''
import numpy as np


class PowerFunction:
    """
    Base class for an isotropic power spectrum P(k).

    Subclasses implement ``evaluate(k)``. Calling the object evaluates it, and
    the result is 0 wherever k <= 0.
    """

    def evaluate(self, k):
        raise NotImplementedError

    def __call__(self, k):
        if np.isscalar(k):
            if k <= 0:
                return 0.
            return self.evaluate(k)
        k = np.asarray(k, dtype=float)
        result = np.zeros_like(k)
        positive = k > 0
        if np.any(positive):
            result[positive] = self.evaluate(k[positive])
        return result


class CallablePower(PowerFunction):
    """Wraps a callable ``func(k)`` as a PowerFunction."""

    def __init__(self, func, vectorized=True):
        if not callable(func):
            raise ValueError('You must provide a callable power function.')
        self.func = func if vectorized else np.vectorize(func, otypes=[float])

    def evaluate(self, k):
        return self.func(k)


class DistortionFunction:
    """
    Base class for a multiplicative distortion D(k, mu).

    Implementations may carry internal parameters that change between calls;
    the correlation engines read them once per ``transform()``.
    """

    def evaluate(self, k, mu):
        raise NotImplementedError

    def __call__(self, k, mu):
        return self.evaluate(k, mu)


class CallableDistortion(DistortionFunction):
    """Wraps a callable ``func(k, mu)`` as a DistortionFunction."""

    def __init__(self, func, vectorized=True):
        if not callable(func):
            raise ValueError('You must provide a callable distortion function.')
        self.func = func if vectorized else np.vectorize(func, otypes=[float])

    def evaluate(self, k, mu):
        return self.func(k, mu)


class RedshiftSpaceDistortion(DistortionFunction):
    """
    Linear (Kaiser) redshift-space distortion of a biased tracer,

        D(k, mu) = (bias * (1 + beta * mu^2))^2

    ``beta`` and ``bias`` may be reassigned between transforms.
    """

    def __init__(self, beta, bias=1.):
        self.beta = beta
        self.bias = bias

    def evaluate(self, k, mu):
        tmp = self.bias * (1 + self.beta * np.asarray(mu) ** 2)
        # broadcast against k so array inputs give array outputs
        return tmp * tmp + 0 * np.asarray(k)


def as_power_function(power):
    if isinstance(power, PowerFunction):
        return power
    if callable(power):
        return CallablePower(power)
    raise ValueError('You must provide a PowerFunction or a callable P(k).')


def as_distortion_function(distortion):
    if distortion is None or isinstance(distortion, DistortionFunction):
        return distortion
    if callable(distortion):
        return CallableDistortion(distortion)
    raise ValueError('You must provide a DistortionFunction or a callable D(k,mu).')
