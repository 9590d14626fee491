'''
	MultipoleTransform evaluates Hankel and spherical Bessel transforms of
	order ell,

		spherical Bessel:  g(v) = 1/(2 pi^2) int u^2 f(u) j_ell(u v) du
		Hankel:            g(v) = 1/(2 pi)   int u   f(u) J_ell(u v) du

	for v in [vmin, vmax]. With x = u v both are

		g(v) = C v^{-d} int f(u) x^d K_ell(x) dln(u),    d = 3 or 2,

	so sampling u and v with a common logarithmic step turns the integral into
	a discrete correlation of f(u_i) with the kernel x^d K_ell(x), which is
	done with one forward FFT, one multiply and one inverse FFT. The FFT of
	the kernel is computed once, when the transform is created.

	The kernel is evaluated down to a small x_lo chosen from the requested
	accuracy and is tapered smoothly to zero at x_hi, a fixed number of
	oscillation cycles past ell. Inputs must be sampled exactly on ugrid and
	results are returned on vgrid.
'''
from time import perf_counter

import numpy as np
from numpy import pi, log, exp, sin
from scipy import fft as sp_fft
from scipy.special import spherical_jn, jv, factorial, factorial2

from .core.CacheManager import kernel_cache


def c_window(x, x_cut, x_max):
    """Taper equal to 1 below x_cut and falling smoothly to 0 at x_max."""
    W = np.ones_like(x)
    right = x > x_cut
    theta = np.clip((x_max - x[right]) / (x_max - x_cut), 0., 1.)
    W[right] = theta - 1 / (2 * pi) * sin(2 * pi * theta)
    return W


class MultipoleTransform:
    """
    Adaptive FFT-based Hankel / spherical Bessel transform.

    Parameters
    ----------
    type : str
        ``MultipoleTransform.SPHERICAL_BESSEL`` (3D) or ``MultipoleTransform.HANKEL`` (2D).
    ell : int
        Multipole order, ell >= 0.
    vmin, vmax : float
        Range of the transformed coordinate where results are needed.
    epsilon : float
        Desired relative accuracy. Sets the neglected small-x part of the kernel
        and the number of kernel oscillations that are kept.
    strategy : str, optional
        ``'estimate'`` picks the FFT size from its prime factors,
        ``'measure'`` times a few candidate sizes and keeps the fastest.
    min_samples_per_cycle : int, optional
        Minimum number of samples per kernel oscillation at the largest x used.
    min_samples_per_decade : int, optional
        Minimum number of samples per decade of u.
    backend : str, optional
        ``'numpy'`` (scipy.fft) or ``'jax'``.
    cache : CacheManager, optional
        Cache for kernel coefficients. Defaults to a cache shared by all transforms.
    verbose : bool, optional
        Print the grid that was chosen.
    """

    SPHERICAL_BESSEL = 'spherical_bessel'
    HANKEL = 'hankel'

    ESTIMATE = 'estimate'
    MEASURE = 'measure'

    # fraction of [0, x_hi] covered by the kernel taper
    TAPER_FRACTION = 0.25

    def __init__(self, type, ell, vmin, vmax, epsilon, strategy='estimate',
                 min_samples_per_cycle=2, min_samples_per_decade=40,
                 backend='numpy', cache=None, verbose=False):

        if type not in (self.SPHERICAL_BESSEL, self.HANKEL):
            raise ValueError(f'Unknown transform type: {type}')
        if int(ell) != ell or ell < 0:
            raise ValueError('ell must be a non-negative integer.')
        if vmin <= 0 or vmax <= vmin:
            raise ValueError('Expected 0 < vmin < vmax.')
        if not 0 < epsilon < 1:
            raise ValueError('epsilon must be in the range (0, 1).')
        if strategy not in (self.ESTIMATE, self.MEASURE):
            raise ValueError(f'Unknown FFT planning strategy: {strategy}')
        if min_samples_per_cycle < 1 or min_samples_per_decade < 1:
            raise ValueError('Minimum sampling densities must be at least 1.')
        if backend not in ('numpy', 'jax'):
            raise ValueError(f'Unknown backend: {backend}')

        self.type = type
        self.ell = int(ell)
        self.vmin = float(vmin)
        self.vmax = float(vmax)
        self.epsilon = epsilon
        self.strategy = strategy
        self.backend = backend
        self._jax = _load_jax_backend() if backend == 'jax' else None

        if type == self.SPHERICAL_BESSEL:
            self._power = 3
            self._norm = 1 / (2 * pi ** 2)
            small_x = float(factorial2(2 * self.ell + 1, exact=True))
        else:
            self._power = 2
            self._norm = 1 / (2 * pi)
            small_x = float(2 ** self.ell * factorial(self.ell, exact=True))

        # x^d K(x) ~ x^(d+ell) / small_x near x = 0, so this drops ~epsilon
        order = self._power + self.ell
        n_cycles = max(4, int(np.ceil(epsilon ** -0.5)))
        self.x_hi = self.ell + 2 * pi * n_cycles
        self.x_taper = (1 - self.TAPER_FRACTION) * self.x_hi
        self.x_lo = min((epsilon * order * small_x) ** (1. / order), 0.5 * self.x_taper)

        dlog = min(2 * pi / (min_samples_per_cycle * self.x_hi), log(10.) / min_samples_per_decade)
        log_umin = log(self.x_lo) - log(self.vmax)
        span_u = log(self.x_hi) - log(self.vmin) - log_umin
        span_v = log(self.vmax) - log(self.vmin)
        n_u = int(np.ceil(span_u / dlog)) + 1
        n_v = int(np.ceil(span_v / dlog)) + 1

        # the correlation of n_u inputs giving n_v outputs needs n_u + n_v - 1
        # kernel samples; shrink the step so that this fills the FFT exactly
        self.N = self._plan_size(n_u + n_v + 1)
        dlog = (span_u + span_v) / (self.N - 2)
        n_v = int(np.ceil(span_v / dlog)) + 1
        n_u = self.N + 1 - n_v
        self.dlog = dlog

        self.__ugrid = exp(log_umin + dlog * np.arange(n_u))
        self.__vgrid = self.vmin * exp(dlog * np.arange(n_v))
        self._prefactor = self._norm * self.__vgrid ** (-self._power)

        self._cache = kernel_cache if cache is None else cache
        self._kernel_fft = self._kernel_coefficients(log_umin + log(self.vmin))
        self._last_window = c_window(self.__ugrid * self.__vgrid[-1], self.x_taper, self.x_hi)

        if verbose:
            print(f'MultipoleTransform: {type} ell={self.ell}, epsilon={epsilon}')
            print(f'  kernel sampled over {self.x_lo:.4g} < x < {self.x_hi:.4g}')
            print(f'  will evaluate at {n_u} points covering {self.__ugrid[0]:.6g} to {self.__ugrid[-1]:.6g}')
            print(f'  results estimated at {n_v} points covering {self.__vgrid[0]:.6g} to {self.__vgrid[-1]:.6g}')
            print(f'  transform evaluated at {self.N} points, truncation fraction {self.truncation_fraction():.4g}')

    @classmethod
    def from_config(cls, type, ell, vmin, vmax, config, cache=None, verbose=False):
        config.build_and_validate()
        return cls(type, ell, vmin, vmax, config.epsilon, strategy=config.strategy,
                   min_samples_per_cycle=config.min_samples_per_cycle,
                   min_samples_per_decade=config.min_samples_per_decade,
                   backend=config.backend, cache=cache, verbose=verbose)

    def _plan_size(self, n_min):
        n_fast = sp_fft.next_fast_len(n_min, real=True)
        if self.strategy == self.ESTIMATE:
            return n_fast
        candidates = {n_fast, 1 << (n_min - 1).bit_length()}
        n = n_fast
        for _ in range(4):
            n = sp_fft.next_fast_len(n + 1, real=True)
            candidates.add(n)
        best, best_time = None, np.inf
        for n in sorted(candidates):
            data = np.zeros(n)
            elapsed = np.inf
            for _ in range(3):
                t0 = perf_counter()
                sp_fft.irfft(sp_fft.rfft(data), n)
                elapsed = min(elapsed, perf_counter() - t0)
            if elapsed < best_time:
                best, best_time = n, elapsed
        return best

    def _kernel_coefficients(self, log_xmin):
        key = (self.type, self.ell, self.N, log_xmin, self.dlog, self.x_hi, self.x_taper)
        cached = self._cache.get('kernel', key)
        if cached is not None:
            return cached

        x = exp(log_xmin + self.dlog * np.arange(self.N))
        kernel = np.zeros(self.N)
        keep = x < self.x_hi
        xk = x[keep]
        if self.type == self.SPHERICAL_BESSEL:
            K = spherical_jn(self.ell, xk)
        else:
            K = jv(self.ell, xk)
        kernel[keep] = self.dlog * xk ** self._power * K * c_window(xk, self.x_taper, self.x_hi)
        return self._cache.set(sp_fft.rfft(kernel), 'kernel', key)

    @property
    def ugrid(self):
        return self.__ugrid.copy()

    @property
    def vgrid(self):
        return self.__vgrid.copy()

    def get_ugrid(self):
        return self.ugrid

    def get_vgrid(self):
        return self.vgrid

    @property
    def num_points(self):
        return self.N

    def get_num_points(self):
        return self.N

    def transform(self, values, out=None):
        """
        Transforms function values sampled on ugrid. Returns the result on
        vgrid, also copied into ``out`` when it is provided.
        """
        values = np.asarray(values, dtype=float)
        n_u, n_v = self.__ugrid.size, self.__vgrid.size
        if values.shape != (n_u,):
            raise ValueError(f'Expected {n_u} values sampled on the u grid, got shape {values.shape}.')
        if out is not None and np.shape(out) != (n_v,):
            raise ValueError(f'Output must have {n_v} elements to match the v grid.')

        if self._jax is None:
            coefs = sp_fft.rfft(values, self.N)
            g = sp_fft.irfft(np.conj(coefs) * self._kernel_fft, self.N)[:n_v]
        else:
            g = np.asarray(self._jax.jax_correlate(self._kernel_fft, values, self.N, n_v))
        result = self._prefactor * g

        if out is not None:
            out[:] = result
        return result

    def truncation_fraction(self, values=None):
        """
        Fraction of the input that is lost to the kernel taper at the largest
        output v. Without ``values`` this is the fraction of u samples affected,
        which only depends on the grid. With ``values`` sampled on ugrid, it is
        the fraction of the weight |f(u)| u^d lying in the tapered region, which
        is exactly zero for inputs that vanish there.
        """
        lost = 1 - self._last_window
        if values is None:
            return float(np.mean(lost))
        values = np.asarray(values, dtype=float)
        if values.shape != self.__ugrid.shape:
            raise ValueError(f'Expected {self.__ugrid.size} values sampled on the u grid.')
        weight = np.abs(values) * self.__ugrid ** self._power
        total = weight.sum()
        if total == 0:
            return 0.
        return float(np.sum(weight * lost) / total)

    def get_truncation_fraction(self, values=None):
        return self.truncation_fraction(values)

    def get_memory_size(self):
        arrays = (self.__ugrid, self.__vgrid, self._prefactor, self._kernel_fft, self._last_window)
        return int(sum(a.nbytes for a in arrays))


def _load_jax_backend():
    try:
        from . import jax_utils
    except ImportError as e:
        raise RuntimeError("MultipoleTransform: the 'jax' backend requires jax, which is not installed.") from e
    return jax_utils
