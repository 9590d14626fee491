import pytest
import numpy as np
import sys
from xicorr import CacheManager, MultipoleTransform

@pytest.fixture
def cache_manager():
    """Create a basic cache manager instance for testing"""
    return CacheManager(max_size_mb=10)

@pytest.fixture
def sample_arrays():
    """Create sample arrays of different sizes for testing"""
    small_array = np.ones((10, 10))          # 800 bytes
    medium_array = np.ones((100, 100))       # 80,000 bytes
    large_array = np.ones((500, 500))        # 2,000,000 bytes
    return small_array, medium_array, large_array

####################INITIALIZATION TESTS####################
def test_init_default():
    cm = CacheManager()
    assert cm.max_size_bytes == 500 * 1024 * 1024
    assert cm.cache == {}
    assert cm.cache_size == 0
    assert cm.hits == 0
    assert cm.misses == 0

def test_init_unlimited_cache(sample_arrays):
    cm = CacheManager(max_size_mb=0)
    cm.set(sample_arrays[2], "kernel", 12345)
    assert cm.max_size_bytes == 0
    assert cm.get("kernel", 12345) is not None

####################GET/SET TESTS####################
def test_get_set_array(cache_manager, sample_arrays):
    small_array, _, _ = sample_arrays
    returned = cache_manager.set(small_array, "kernel", ("hankel", 0, 128))
    assert returned is small_array
    result = cache_manager.get("kernel", ("hankel", 0, 128))
    assert np.array_equal(result, small_array)
    assert cache_manager.get("kernel", ("hankel", 1, 128)) is None

def test_cache_hits_misses(cache_manager):
    cache_manager.get("kernel", 12345)
    assert cache_manager.hits == 0
    assert cache_manager.misses == 1

    cache_manager.set("value", "kernel", 12345)
    cache_manager.get("kernel", 12345)
    assert cache_manager.hits == 1
    assert cache_manager.misses == 1
    assert cache_manager.hit_counts[("kernel", 12345)] == 1

####################CACHE SIZE TESTS####################
def test_array_size_calculation(cache_manager, sample_arrays):
    small_array, medium_array, large_array = sample_arrays
    assert cache_manager._get_array_size(small_array) == 800
    assert cache_manager._get_array_size(medium_array) == 80000
    assert cache_manager._get_array_size(large_array) == 2000000
    assert cache_manager._get_array_size("string") == sys.getsizeof("string")
    assert cache_manager._get_array_size(None) == sys.getsizeof(None)

def test_complex_array_size(cache_manager):
    coefs = np.ones(64, dtype=complex)
    assert cache_manager._get_array_size(coefs) == 64 * 16
    nested = ([1, 2], coefs)
    assert cache_manager._get_array_size(nested) > coefs.nbytes

def test_overwrite_same_key(cache_manager, sample_arrays):
    small_array, medium_array, _ = sample_arrays
    cache_manager.set(small_array, "kernel", "key")
    original_size = cache_manager.cache_size
    cache_manager.set(medium_array, "kernel", "key")
    assert np.array_equal(cache_manager.get("kernel", "key"), medium_array)
    assert cache_manager.cache_size - original_size == 80000 - 800

####################EVICTION TESTS####################
def test_eviction_when_full(sample_arrays):
    cm = CacheManager(max_size_mb=3)
    _, medium_array, large_array = sample_arrays

    cm.set(medium_array, "kernel", "medium")
    cm.set(large_array, "kernel", "large")
    assert cm.get("kernel", "medium") is not None
    assert cm.get("kernel", "large") is not None

    cm.set(large_array, "kernel", "large2")
    entries_found = sum(cm.get("kernel", key) is not None for key in ("medium", "large", "large2"))
    assert entries_found < 3
    # most recently added entry is kept
    assert cm.get("kernel", "large2") is not None
    assert cm.cache_size <= cm.max_size_bytes

def test_too_large_is_not_cached(sample_arrays):
    cm = CacheManager(max_size_mb=1)
    _, _, large_array = sample_arrays
    returned = cm.set(large_array, "kernel", "large")
    assert returned is large_array
    assert cm.get("kernel", "large") is None
    assert cm.cache_size == 0

####################CLEAR AND STATS TESTS####################
def test_clear(cache_manager, sample_arrays):
    small_array, medium_array, _ = sample_arrays
    cache_manager.set(small_array, "kernel", "small")
    cache_manager.set(medium_array, "kernel", "medium")
    cache_manager.clear()
    assert cache_manager.cache == {}
    assert cache_manager.cache_size == 0
    assert cache_manager.get("kernel", "small") is None

def test_stats(cache_manager, sample_arrays):
    small_array, medium_array, _ = sample_arrays
    cache_manager.set(small_array, "kernel", "small")
    cache_manager.set(medium_array, "kernel", "medium")
    cache_manager.get("kernel", "small")
    cache_manager.get("kernel", "medium")
    cache_manager.get("kernel", "nonexistent")

    stats = cache_manager.stats()
    assert stats['items'] == 2
    expected_size_mb = (800 + 80000) / (1024 * 1024)
    assert abs(stats['size_mb'] - expected_size_mb) <= 0.001
    assert stats['max_size_mb'] == 10
    assert stats['hit_rate'] == 2/3
    assert "kernel" in repr(cache_manager)

####################TRANSFORM KERNEL SHARING TESTS####################
def test_identical_transforms_share_kernel():
    cm = CacheManager(max_size_mb=50)
    mt1 = MultipoleTransform(MultipoleTransform.SPHERICAL_BESSEL, 0, 1., 100., 1e-2, cache=cm)
    assert cm.stats()['items'] == 1
    assert cm.misses == 1
    mt2 = MultipoleTransform(MultipoleTransform.SPHERICAL_BESSEL, 0, 1., 100., 1e-2, cache=cm)
    assert cm.stats()['items'] == 1
    assert cm.hits == 1
    assert mt1._kernel_fft is mt2._kernel_fft

def test_different_transforms_do_not_share_kernel():
    cm = CacheManager(max_size_mb=50)
    MultipoleTransform(MultipoleTransform.SPHERICAL_BESSEL, 0, 1., 100., 1e-2, cache=cm)
    MultipoleTransform(MultipoleTransform.SPHERICAL_BESSEL, 2, 1., 100., 1e-2, cache=cm)
    MultipoleTransform(MultipoleTransform.HANKEL, 0, 1., 100., 1e-2, cache=cm)
    assert cm.stats()['items'] == 3
    assert cm.hits == 0
