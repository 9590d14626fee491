'''
	DistortedPowerCorrelation calculates the 3D correlation function xi(r, mu)
	of an isotropic power spectrum P(k) distorted by D(k, mu_k), using a
	Legendre expansion in mu and one spherical Bessel MultipoleTransform per
	multipole:

		P(k, mu)   = sum_ell P_ell(k) L_ell(mu)
		xi_ell(r)  = i^ell / (2 pi^2) int k^2 P_ell(k) j_ell(k r) dk
		xi(r, mu)  = sum_ell xi_ell(r) L_ell(mu)

	Even multipoles give the real part of xi and odd multipoles (only
	calculated when the distortion is not symmetric in mu) the imaginary part.

	transform() runs a termination test on the multipoles just beyond ell_max:
	their contribution must be small compared with relerr times the sum of the
	calculated multipoles, or with abserr / r^abspow, everywhere on the r grid.
'''
import numpy as np
from numpy import log
from scipy.interpolate import CubicSpline
from scipy.special import eval_legendre

from .MultipoleTransform import MultipoleTransform
from .PowerFunction import as_power_function, as_distortion_function
from .transform_config import TransformConfig


class DistortedPowerCorrelation:
    """
    Parameters
    ----------
    power : PowerFunction or callable
        Isotropic power spectrum P(k).
    distortion : DistortionFunction or callable
        Distortion D(k, mu). May change internally between calls to ``transform()``.
    rmin, rmax : float
        Range of r where xi(r, mu) is needed.
    nr : int
        Number of equally spaced r values used by the termination test.
    ell_max : int, optional
        Largest multipole used.
    symmetric : bool, optional
        Distortion is symmetric in mu, so only even multipoles are used.
    relerr, abserr, abspow : float, optional
        Termination goals. A point passes when the neglected multipoles satisfy
        ``|xi| <= relerr * sum_ell |xi_ell|`` or ``|xi| * r**abspow <= abserr``.
    n_mu : int, optional
        Number of Gauss-Legendre points used to project D(k, mu) on multipoles.
    config : TransformConfig, optional
        Accuracy, sampling and backend of the multipole transforms.
    cache : CacheManager, optional
        Kernel cache passed to the multipole transforms.
    verbose : bool, optional
        Print progress and termination test failures.
    """

    def __init__(self, power, distortion, rmin, rmax, nr, ell_max=4, symmetric=True,
                 relerr=1e-2, abserr=1e-3, abspow=0., n_mu=32, config=None, cache=None,
                 verbose=False):

        if rmin <= 0 or rmax <= rmin:
            raise ValueError('Expected 0 < rmin < rmax.')
        if int(nr) != nr or nr < 2:
            raise ValueError('nr must be an integer >= 2.')
        if int(ell_max) != ell_max or ell_max < 0:
            raise ValueError('ell_max must be a non-negative integer.')
        if relerr < 0 or abserr < 0:
            raise ValueError('Termination goals relerr and abserr cannot be negative.')
        if int(n_mu) != n_mu or n_mu < 2:
            raise ValueError('n_mu must be an integer >= 2.')

        self._power = as_power_function(power)
        self._distortion = as_distortion_function(distortion)
        self.rmin = float(rmin)
        self.rmax = float(rmax)
        self.nr = int(nr)
        self.ell_max = int(ell_max)
        self.symmetric = bool(symmetric)
        self.relerr = relerr
        self.abserr = abserr
        self.abspow = abspow
        self.config = (TransformConfig() if config is None else config).build_and_validate()
        self._cache = cache
        self.verbose = verbose

        self._rgrid = np.linspace(self.rmin, self.rmax, self.nr)
        if self.symmetric:
            self._ells = list(range(0, self.ell_max + 1, 2))
            self._check_ells = [self._ells[-1] + 2]
        else:
            self._ells = list(range(0, self.ell_max + 1))
            self._check_ells = [self.ell_max + 1, self.ell_max + 2]
        self._mu, self._weights = np.polynomial.legendre.leggauss(int(n_mu))

        self._transforms = {}
        self._sampled_power = {}
        self._projectors = {}
        self._splines = None
        self._initialized = False

    @property
    def ells(self):
        return list(self._ells)

    @property
    def rgrid(self):
        return self._rgrid.copy()

    def initialize(self):
        """Builds the multipole transforms and samples P(k) on their u grids."""
        for ell in self._ells + self._check_ells:
            mt = MultipoleTransform.from_config(MultipoleTransform.SPHERICAL_BESSEL, ell,
                                                self.rmin, self.rmax, self.config,
                                                cache=self._cache, verbose=self.verbose)
            self._transforms[ell] = mt
            self._sampled_power[ell] = np.asarray(self._power(mt.ugrid), dtype=float)
            # Gauss-Legendre weights for (2 ell + 1)/2 int L_ell(mu) D(k, mu) dmu
            self._projectors[ell] = 0.5 * (2 * ell + 1) * self._weights * eval_legendre(ell, self._mu)
        self._initialized = True
        if self.verbose:
            print(f'DistortedPowerCorrelation: initialized multipoles {self._ells}, '
                  f'checking {self._check_ells}')
            print(f'  transform settings: {self.config.as_dict()}')

    def get_power(self, k, mu):
        """Returns P(k, mu) = P(k) D(k, mu)."""
        return self._power(k) * self._distortion(k, mu)

    def _transform_multipole(self, ell):
        mt = self._transforms[ell]
        u = mt.ugrid
        D = np.broadcast_to(self._distortion(u[:, None], self._mu[None, :]), (u.size, self._mu.size))
        P_ell = self._sampled_power[ell] * (D @ self._projectors[ell])
        # real part of i^ell for even ell, imaginary part for odd ell
        phase = -1. if (ell // 2) % 2 else 1.
        return phase * mt.transform(P_ell)

    def transform(self, bypass=False):
        """
        Transforms the distorted power to r space. Returns True when the
        termination test passes or ``bypass`` is set, otherwise False; the new
        results replace the previous ones in either case.
        """
        if not self._initialized:
            self.initialize()

        splines = {}
        for ell in self._ells:
            mt = self._transforms[ell]
            splines[ell] = CubicSpline(log(mt.vgrid), self._transform_multipole(ell))
        self._splines = splines

        if bypass:
            return True

        log_r = log(self._rgrid)
        envelope = sum(np.abs(spline(log_r)) for spline in splines.values())
        weight = self._rgrid ** self.abspow
        ok = True
        for ell in self._check_ells:
            mt = self._transforms[ell]
            xi_check = np.abs(np.interp(log_r, log(mt.vgrid), self._transform_multipole(ell)))
            passed = (xi_check * weight <= self.abserr) | (xi_check <= self.relerr * envelope)
            if not np.all(passed):
                ok = False
                if self.verbose:
                    worst = self._rgrid[np.argmax(xi_check / np.maximum(envelope, 1e-300))]
                    print(f'  termination test fails for ell={ell} at {np.sum(~passed)} of '
                          f'{self.nr} points (worst near r = {worst:.4g})')
        return ok

    def _check_ready(self, r):
        if self._splines is None:
            raise RuntimeError('transform() must be called before reading the correlation.')
        r = np.asarray(r, dtype=float)
        if np.any(r < self.rmin) or np.any(r > self.rmax):
            raise ValueError(f'r must be in [{self.rmin}, {self.rmax}].')
        return r

    def get_multipole(self, r, ell):
        """
        Returns xi_ell(r), including the real (even ell) or imaginary (odd ell)
        part of the i^ell phase, so that xi = sum_ell xi_ell(r) L_ell(mu).
        """
        r = self._check_ready(r)
        if ell not in self._splines:
            raise ValueError(f'Multipole ell={ell} was not calculated, available: {self._ells}')
        result = self._splines[ell](log(r))
        return float(result) if result.ndim == 0 else result

    def _sum_multipoles(self, r, mu, parity):
        r = self._check_ready(r)
        mu = np.asarray(mu, dtype=float)
        if np.any(np.abs(mu) > 1):
            raise ValueError('mu must be in [-1, 1].')
        log_r = log(r)
        result = 0.
        for ell, spline in self._splines.items():
            if ell % 2 == parity:
                result = result + spline(log_r) * eval_legendre(ell, mu)
        result = np.asarray(result)
        return float(result) if result.ndim == 0 else result

    def get_correlation(self, r, mu):
        """Returns the real part of xi(r, mu) from the most recent transform."""
        return self._sum_multipoles(r, mu, 0)

    def get_im_correlation(self, r, mu):
        """Returns the imaginary part of xi(r, mu), from the odd multipoles."""
        if self.symmetric:
            raise RuntimeError('Odd multipoles are not calculated for a symmetric distortion.')
        return self._sum_multipoles(r, mu, 1)

    def get_memory_size(self):
        size = sum(mt.get_memory_size() for mt in self._transforms.values())
        size += sum(P.nbytes for P in self._sampled_power.values())
        if self._splines is not None:
            size += sum(s.c.nbytes + s.x.nbytes for s in self._splines.values())
        return int(size)
