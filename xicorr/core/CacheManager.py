import sys

import numpy as np


class CacheManager:
    """Size-bounded cache for precomputed transform kernel coefficients"""

    def __init__(self, max_size_mb=500):
        """Initialize cache with optional maximum size in MB (0 for no limit)"""
        self.cache = {}
        self.hit_counts = {}
        self.cache_size = 0
        self.max_size_bytes = int(max_size_mb * 1024 * 1024)
        self.hits = 0
        self.misses = 0

    def _get_array_size(self, arr):
        """Size of a cached object in bytes"""
        if isinstance(arr, np.ndarray):
            return arr.nbytes
        elif isinstance(arr, (tuple, list)):
            return sys.getsizeof(arr) + sum(self._get_array_size(item) for item in arr)
        return sys.getsizeof(arr)

    def get(self, category, hash_key):
        """Get an item from cache using category and key, or None on a miss"""
        key = (category, hash_key)
        if key in self.cache:
            self.hits += 1
            self.hit_counts[key] += 1
            return self.cache[key]
        self.misses += 1
        return None

    def set(self, value, category, hash_key):
        """Store an item in cache using category and key and return it"""
        key = (category, hash_key)
        old_size = 0
        if key in self.cache:
            old_size = self._get_array_size(key) + self._get_array_size(self.cache[key])
        total_size = self._get_array_size(key) + self._get_array_size(value)

        if self.max_size_bytes > 0:
            if total_size > self.max_size_bytes:
                # too large to ever fit, hand back without caching
                return value
            if (self.cache_size - old_size + total_size) > self.max_size_bytes:
                self._evict(total_size - old_size, keep=key)

        self.cache[key] = value
        self.hit_counts.setdefault(key, 0)
        self.cache_size = self.cache_size - old_size + total_size
        return value

    def _evict(self, required_size, keep=None):
        """Evict least used items until there's room for required_size"""
        items = sorted(self.cache.items(), key=lambda item: self.hit_counts.get(item[0], 0))
        freed = 0
        for key, value in items:
            if freed >= required_size:
                break
            if key == keep:
                continue
            total_size = self._get_array_size(key) + self._get_array_size(value)
            del self.cache[key]
            self.hit_counts.pop(key, None)
            self.cache_size -= total_size
            freed += total_size

    def clear(self):
        """Clear the entire cache"""
        self.cache.clear()
        self.hit_counts.clear()
        self.cache_size = 0

    def stats(self):
        """Return statistics about the cache usage"""
        total_accesses = self.hits + self.misses
        max_size_mb = self.max_size_bytes / (1024 * 1024) if self.max_size_bytes > 0 else float('inf')
        return {
            'items': len(self.cache),
            'size_bytes': self.cache_size,
            'size_mb': self.cache_size / (1024 * 1024),
            'max_size_mb': max_size_mb,
            'percent_full': (self.cache_size / self.max_size_bytes) * 100 if self.max_size_bytes > 0 else 0,
            'hits': self.hits,
            'misses': self.misses,
            'hit_rate': self.hits / total_accesses if total_accesses > 0 else 0,
        }

    def __repr__(self):
        stats = self.stats()
        result = [
            f"CacheManager: {stats['size_mb']:.2f}MB/{stats['max_size_mb']:.2f}MB used",
            f"Items: {stats['items']}, Hit rate: {stats['hit_rate']:.2%}"
        ]
        categories = {}
        for category, hash_key in self.cache:
            categories[category] = categories.get(category, 0) + 1
        for category, count in sorted(categories.items()):
            result.append(f"  Category: {category} ({count} items)")
        return "\n".join(result)


# shared by every transform that is not given its own cache
kernel_cache = CacheManager()
