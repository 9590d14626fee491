'''
	DistortedPowerCorrelationFft calculates the 3D correlation function
	xi(r, mu) of an isotropic power spectrum P(k) that is distorted by a
	multiplicative function D(k, mu_k), using a 3D inverse FFT on a periodic
	grid. The line of sight is the z axis.

	It is optimized for the case where D(k, mu_k) changes (e.g. as its
	internal parameters are changed) but where, after each change, xi(r, mu)
	needs to be evaluated many times:

		- transform() each time D(k, mu_k) changes internally
		- get_correlation(r, mu) many times

	Conventions: xi(x) = int d^3k / (2 pi)^3 P(k) exp(i k.x), evaluated as
	the discrete sum (1/V) sum_k P(k) exp(i k.x) over the grid with volume
	V = nx ny nz spacing^3. The k = 0 mode is dropped (P(0) = 0), so every
	xi value is offset by -P(0) D(0, 0) / V from the continuum result.
'''
import numpy as np
from numpy import pi
from scipy.interpolate import RectBivariateSpline

from .PowerFunction import as_power_function, as_distortion_function


class DistortedPowerCorrelationFft:
    """
    Parameters
    ----------
    power : PowerFunction or callable
        Isotropic power spectrum P(k).
    distortion : DistortionFunction or callable
        Real part of D(k, mu).
    spacing : float
        Grid spacing, in the length units conjugate to k.
    nx, ny, nz : int
        Grid size along each axis. ``ny = 0`` means ``ny = nx`` and ``nz = 0``
        means ``nz = ny``.
    imdistortion : DistortionFunction or callable, optional
        Imaginary part of D(k, mu). Must be odd in mu for xi to be real.
    imagpart : bool, optional
        Include ``imdistortion`` in the transform.
    verbose : bool, optional
        Print grid and memory information.
    """

    def __init__(self, power, distortion, spacing, nx, ny=0, nz=0, imdistortion=None,
                 imagpart=False, verbose=False):

        if spacing <= 0:
            raise ValueError('Grid spacing must be positive.')
        if ny == 0:
            ny = nx
        if nz == 0:
            nz = ny
        for n in (nx, ny, nz):
            if int(n) != n or n < 2:
                raise ValueError('Grid sizes must be integers >= 2.')
        if imagpart and imdistortion is None:
            raise ValueError('imagpart requires an imaginary distortion function.')

        self._power = as_power_function(power)
        self._distortion = as_distortion_function(distortion)
        self._imdistortion = as_distortion_function(imdistortion)
        self._imagpart = bool(imagpart)
        self.spacing = float(spacing)
        self.nx, self.ny, self.nz = int(nx), int(ny), int(nz)
        self.verbose = verbose

        self._kxgrid = 2 * pi * np.fft.fftfreq(self.nx, d=self.spacing)
        self._kygrid = 2 * pi * np.fft.fftfreq(self.ny, d=self.spacing)
        if self._imagpart:
            self._kzgrid = 2 * pi * np.fft.fftfreq(self.nz, d=self.spacing)
        else:
            self._kzgrid = 2 * pi * np.fft.rfftfreq(self.nz, d=self.spacing)
        # N / V, since numpy's inverse FFT already divides by N
        self._norm = 1. / self.spacing ** 3

        # (r_perp, r_par) plane used for interpolation
        self._rperp = self.spacing * np.arange(self.nx // 2 + 1)
        self._rpar = self.spacing * np.arange(-(self.nz // 2), (self.nz - 1) // 2 + 1)

        self._xi = None
        self._interpolator = None

        if verbose:
            print(f'DistortedPowerCorrelationFft: grid ({self.nx},{self.ny},{self.nz}) '
                  f'with spacing {self.spacing}')
            print(f'  k spans {abs(self._kxgrid[1]):.4g} to {pi / self.spacing:.4g} along each axis')

    def get_power(self, k, mu):
        """Returns P(k, mu) = P(k) D(k, mu)."""
        return self._power(k) * self._distortion(k, mu)

    def get_im_power(self, k, mu):
        """Returns the imaginary part P(k) D_im(k, mu)."""
        if self._imdistortion is None:
            raise RuntimeError('No imaginary distortion function was provided.')
        return self._power(k) * self._imdistortion(k, mu)

    def _sample_power(self):
        kx = self._kxgrid[:, None, None]
        ky = self._kygrid[None, :, None]
        kz = self._kzgrid[None, None, :]
        k = np.sqrt(kx ** 2 + ky ** 2 + kz ** 2)
        mu = np.divide(kz, k, out=np.zeros_like(k), where=k > 0)
        k_flat = k.ravel()
        mu_flat = mu.ravel()
        power = self._power(k_flat)
        data = power * self._distortion(k_flat, mu_flat)
        if self._imagpart:
            data = data + 1j * power * self._imdistortion(k_flat, mu_flat)
        return np.reshape(data, k.shape)

    def transform(self):
        """Transforms the distorted power spectrum to r space."""
        data = self._sample_power()
        if self._imagpart:
            xi = np.fft.ifftn(data).real
        else:
            xi = np.fft.irfftn(data, s=(self.nx, self.ny, self.nz), axes=(0, 1, 2))
        xi *= self._norm
        self._xi = xi

        # y = 0 plane, x >= 0, z centred on zero
        plane = np.fft.fftshift(xi[: self.nx // 2 + 1, 0, :], axes=1)
        self._interpolator = RectBivariateSpline(self._rperp, self._rpar, plane, kx=3, ky=3)

        if self.verbose:
            print(f'  transform done, memory size {self.get_memory_size() / 1048576.:.1f} Mb')

    @property
    def xi(self):
        """Correlation function on the full periodic grid from the last transform."""
        if self._xi is None:
            raise RuntimeError('transform() must be called before reading the correlation.')
        return self._xi

    def get_correlation(self, r, mu):
        """Returns xi(r, mu) interpolated from the most recent transform."""
        if self._interpolator is None:
            raise RuntimeError('transform() must be called before get_correlation().')
        r = np.asarray(r, dtype=float)
        mu = np.asarray(mu, dtype=float)
        if np.any(np.abs(mu) > 1):
            raise ValueError('mu must be in [-1, 1].')
        if np.any(r < 0):
            raise ValueError('r must be non-negative.')
        rpar = r * mu
        rperp = r * np.sqrt(1 - mu ** 2)
        if (np.any(rperp > self._rperp[-1]) or np.any(rpar < self._rpar[0])
                or np.any(rpar > self._rpar[-1])):
            raise ValueError('(r, mu) lies outside the tabulated (r_perp, r_par) plane.')
        result = self._interpolator(rperp, rpar, grid=False)
        return float(result) if result.ndim == 0 else result

    def get_memory_size(self):
        """
        Bytes retained by the wavenumber axes, the correlation grid and the
        interpolator. Available before the first transform so that callers
        can budget large grids.
        """
        itemsize = np.dtype(float).itemsize
        size = self._kxgrid.nbytes + self._kygrid.nbytes + self._kzgrid.nbytes
        size += self.nx * self.ny * self.nz * itemsize
        if self._interpolator is None:
            # one spline coefficient per plane sample plus the knots
            size += (self._rperp.size * self._rpar.size + self._rperp.size + self._rpar.size + 8) * itemsize
        else:
            tx, ty = self._interpolator.get_knots()
            size += self._interpolator.get_coeffs().nbytes + tx.nbytes + ty.nbytes
        return int(size)
