from functools import partial

from jax import numpy as jnp
from jax import config, jit
config.update("jax_enable_x64", True)


@partial(jit, static_argnames=["n_fft", "n_out"])
def jax_correlate(kernel_fft, values, n_fft, n_out):
    """
    Discrete correlation sum_i values[i] * kernel[i + j] for j < n_out, given
    the real FFT of the kernel. Mirrors the numpy path of MultipoleTransform.
    """
    coefs = jnp.fft.rfft(values, n=n_fft)
    return jnp.fft.irfft(jnp.conj(coefs) * kernel_fft, n=n_fft)[:n_out]
