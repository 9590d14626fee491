'''
	Tabulated power spectrum P(k) with optional power-law extrapolation.

	The table is assumed (but not required) to be approximately logarithmically
	spaced in k. Values inside the table are obtained from a cubic spline in
	log(k) and log(P) (or P, when the table is not strictly positive). Outside
	the table a power law fit to the samples nearest each end can be used, after
	checking that it reproduces the skipped sample to within max_rel_error.
'''
import warnings

import numpy as np
from numpy import log, exp
from scipy.interpolate import CubicSpline

from .PowerFunction import PowerFunction


class PowerLawExtrapolator:
    """
    Power law A k^n through the samples (k0, P0) and (k2, P2), checked against
    the intermediate sample (k1, P1).
    """

    def __init__(self, k0, P0, k1, P1, k2, P2):
        self.valid = False
        self.n = None
        self.amplitude = None
        self.rel_error = np.inf
        # a power law cannot change sign or pass through zero
        if P0 == 0 or P2 == 0 or np.sign(P0) != np.sign(P2):
            return
        self.n = log(P2 / P0) / log(k2 / k0)
        self.amplitude = P0 / k0 ** self.n
        predicted = self.evaluate(k1)
        if P1 != 0:
            self.rel_error = abs(predicted - P1) / abs(P1)

    def check(self, max_rel_error):
        self.valid = self.rel_error <= max_rel_error
        return self.valid

    def evaluate(self, k):
        return self.amplitude * np.power(k, self.n)


class TabulatedPower(PowerFunction):
    """
    Power spectrum interpolated from tabulated (k, P(k)) values.

    Parameters
    ----------
    k : array_like
        Tabulated wavenumbers. Must be positive and strictly increasing.
    Pk : array_like
        Tabulated power, same length as ``k``.
    extrapolate_below : bool, optional
        Request power-law extrapolation for k < kmin.
    extrapolate_above : bool, optional
        Request power-law extrapolation for k > kmax.
    max_rel_error : float, optional
        Maximum relative error allowed when the power law fit to the two outer
        samples is used to predict the sample between them. Extrapolation on a
        side that fails this check is disabled.
    verbose : bool, optional
        Print and warn about extrapolations that were disabled.

    Notes
    -----
    Evaluating outside ``[kmin, kmax]`` on a side without extrapolation raises
    ``ValueError``; the result is never clamped. ``P(k) = 0`` for ``k <= 0``.
    """

    def __init__(self, k, Pk, extrapolate_below=False, extrapolate_above=False,
                 max_rel_error=1e-3, verbose=False):

        k = np.array(k, dtype=float)
        Pk = np.array(Pk, dtype=float)
        if k.ndim != 1 or Pk.ndim != 1:
            raise ValueError('Tabulated k and P(k) must be one-dimensional.')
        if k.size != Pk.size:
            raise ValueError(f'Tabulated k and P(k) have different sizes ({k.size} != {Pk.size}).')
        if k.size < 3:
            raise ValueError('At least 3 tabulated values are required.')
        if not (np.all(np.isfinite(k)) and np.all(np.isfinite(Pk))):
            raise ValueError('Tabulated k and P(k) must be finite.')
        if k[0] <= 0:
            raise ValueError('Tabulated k values must all be > 0.')
        if np.any(np.diff(k) <= 0):
            raise ValueError('Tabulated k values must be strictly increasing.')

        self.__k = k
        self.__Pk = Pk
        self._kmin = k[0]
        self._kmax = k[-1]
        self._max_rel_error = max_rel_error
        self._requested = (bool(extrapolate_below), bool(extrapolate_above))

        self._log_power = bool(np.all(Pk > 0))
        if self._log_power:
            self._spline = CubicSpline(log(k), log(Pk))
        else:
            self._spline = CubicSpline(log(k), Pk)

        self._below = None
        self._above = None
        if extrapolate_below:
            below = PowerLawExtrapolator(k[0], Pk[0], k[1], Pk[1], k[2], Pk[2])
            if below.check(max_rel_error):
                self._below = below
            elif verbose:
                self._report('below', k[1], below.rel_error)
        if extrapolate_above:
            above = PowerLawExtrapolator(k[-1], Pk[-1], k[-2], Pk[-2], k[-3], Pk[-3])
            if above.check(max_rel_error):
                self._above = above
            elif verbose:
                self._report('above', k[-2], above.rel_error)

        if verbose:
            print(f'TabulatedPower: {k.size} points covering {self._kmin} to {self._kmax}')
            if self._below is not None:
                print(f'  extrapolating below kmin with P ~ k^{self._below.n:.4f}')
            if self._above is not None:
                print(f'  extrapolating above kmax with P ~ k^{self._above.n:.4f}')

    def _report(self, side, kcheck, rel_error):
        msg = (f'Power-law extrapolation {side} the tabulated range is disabled: '
               f'relative error {rel_error:.3g} at k = {kcheck:.6g} exceeds {self._max_rel_error:.3g}.')
        print(msg)
        warnings.warn(msg)

    @property
    def k(self):
        return self.__k.copy()

    @property
    def Pk(self):
        return self.__Pk.copy()

    @property
    def kmin(self):
        return self._kmin

    @property
    def kmax(self):
        return self._kmax

    @property
    def max_rel_error(self):
        return self._max_rel_error

    @property
    def extrapolate_below(self):
        return self._below is not None

    @property
    def extrapolate_above(self):
        return self._above is not None

    def get_kmin(self):
        return self._kmin

    def get_kmax(self):
        return self._kmax

    def _interpolate(self, k):
        value = self._spline(log(k))
        return exp(value) if self._log_power else value

    def evaluate(self, k):
        scalar = np.isscalar(k)
        k = np.atleast_1d(np.asarray(k, dtype=float))
        result = np.zeros_like(k)

        # k within rounding of an endpoint, e.g. after a log round trip, counts as inside
        at_min = np.isclose(k, self._kmin, rtol=1e-12, atol=0.)
        at_max = np.isclose(k, self._kmax, rtol=1e-12, atol=0.)
        low = (k > 0) & (k < self._kmin) & ~at_min
        high = (k > self._kmax) & ~at_max
        inside = ((k >= self._kmin) | at_min) & ((k <= self._kmax) | at_max)

        if np.any(low):
            if self._below is None:
                raise ValueError(f'k = {k[low].min():.6g} is below the tabulated range '
                                 f'[{self._kmin:.6g}, {self._kmax:.6g}] and extrapolation is disabled.')
            result[low] = self._below.evaluate(k[low])
        if np.any(high):
            if self._above is None:
                raise ValueError(f'k = {k[high].max():.6g} is above the tabulated range '
                                 f'[{self._kmin:.6g}, {self._kmax:.6g}] and extrapolation is disabled.')
            result[high] = self._above.evaluate(k[high])
        if np.any(inside):
            result[inside] = self._interpolate(np.clip(k[inside], self._kmin, self._kmax))

        return result[0] if scalar else result

    def create_delta(self, other, verbose=False):
        """
        Returns a new TabulatedPower for ``self - other`` sampled on our k grid,
        created with the same extrapolation options as this object. The result
        holds its own copy of the values.
        """
        k = self.__k.copy()
        delta = self(k) - other(k)
        below, above = self._requested
        return TabulatedPower(k, delta, extrapolate_below=below, extrapolate_above=above,
                              max_rel_error=self._max_rel_error, verbose=verbose)


def load_tabulated_power(filename, extrapolate_below=False, extrapolate_above=False,
                         max_rel_error=1e-3, verbose=False):
    """Creates a TabulatedPower from a two-column (k, P(k)) text file."""
    data = np.loadtxt(filename)
    if data.ndim != 2 or data.shape[1] < 2:
        raise ValueError(f'Expected at least two columns of k, P(k) values in {filename}.')
    if verbose:
        print(f'Read {data.shape[0]} rows from {filename}')
    return TabulatedPower(data[:, 0], data[:, 1], extrapolate_below=extrapolate_below,
                          extrapolate_above=extrapolate_above, max_rel_error=max_rel_error,
                          verbose=verbose)
