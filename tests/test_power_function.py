import pytest
import numpy as np
from numpy.testing import assert_allclose
from xicorr import (PowerFunction, CallablePower, DistortionFunction,
                    CallableDistortion, RedshiftSpaceDistortion)
from xicorr.PowerFunction import as_power_function, as_distortion_function


class GaussianPower(PowerFunction):
    def __init__(self, R):
        self.R = R

    def evaluate(self, k):
        return np.exp(-0.5 * (k * self.R) ** 2)


####################POWER FUNCTION TESTS####################
def test_base_class_not_implemented():
    with pytest.raises(NotImplementedError):
        PowerFunction()(1.)
    with pytest.raises(NotImplementedError):
        DistortionFunction()(1., 0.5)

def test_subclass_evaluate():
    power = GaussianPower(2.)
    assert power(0.5) == pytest.approx(np.exp(-0.5))
    k = np.array([0.5, 1.])
    assert_allclose(power(k), np.exp(-0.5 * (2 * k) ** 2))

def test_zero_for_non_positive_k():
    power = CallablePower(lambda k: 1. / k)
    assert power(0.) == 0.
    assert power(-2.) == 0.
    result = power(np.array([-1., 0., 2.]))
    assert_allclose(result, [0., 0., 0.5])

def test_callable_power_multidimensional():
    power = CallablePower(lambda k: k ** 2)
    k = np.arange(-2., 4.).reshape(2, 3)
    result = power(k)
    assert result.shape == (2, 3)
    assert_allclose(result, np.where(k > 0, k ** 2, 0.))

def test_callable_power_not_vectorized():
    power = CallablePower(lambda k: max(k, 1.), vectorized=False)
    assert_allclose(power(np.array([0.5, 2.])), [1., 2.])

def test_callable_power_invalid():
    with pytest.raises(ValueError):
        CallablePower(1.)

####################DISTORTION TESTS####################
def test_callable_distortion():
    distortion = CallableDistortion(lambda k, mu: 1 + k * mu)
    assert distortion(2., 0.5) == pytest.approx(2.)
    k = np.array([1., 2.])
    mu = np.array([0., 1.])
    assert_allclose(distortion(k, mu), [1., 3.])

def test_callable_distortion_invalid():
    with pytest.raises(ValueError):
        CallableDistortion('not callable')

def test_redshift_space_distortion():
    rsd = RedshiftSpaceDistortion(beta=0.5, bias=2.)
    assert rsd(0.1, 0.) == pytest.approx(4.)
    assert rsd(0.1, 1.) == pytest.approx((2 * 1.5) ** 2)
    assert rsd(0.1, -1.) == rsd(0.1, 1.)

def test_redshift_space_distortion_broadcast():
    rsd = RedshiftSpaceDistortion(beta=0.3)
    k = np.linspace(0.1, 1., 5)[:, None]
    mu = np.linspace(-1., 1., 7)[None, :]
    result = rsd(k, mu)
    assert result.shape == (5, 7)
    assert_allclose(result[0], result[-1])

def test_redshift_space_distortion_parameters_change():
    rsd = RedshiftSpaceDistortion(beta=0.)
    assert rsd(1., 1.) == pytest.approx(1.)
    rsd.beta = 1.
    rsd.bias = 0.5
    assert rsd(1., 1.) == pytest.approx(1.)
    assert rsd(1., 0.) == pytest.approx(0.25)

####################ADAPTER TESTS####################
def test_as_power_function():
    power = GaussianPower(1.)
    assert as_power_function(power) is power
    wrapped = as_power_function(lambda k: k)
    assert isinstance(wrapped, CallablePower)
    with pytest.raises(ValueError):
        as_power_function(3.)

def test_as_distortion_function():
    assert as_distortion_function(None) is None
    rsd = RedshiftSpaceDistortion(0.5)
    assert as_distortion_function(rsd) is rsd
    assert isinstance(as_distortion_function(lambda k, mu: 1.), CallableDistortion)
    with pytest.raises(ValueError):
        as_distortion_function([1., 2.])
