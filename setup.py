from setuptools import setup, find_packages

install_requires = [
    'numpy>=1.21.0',
    'scipy>=1.7.0',
    'jax>=0.4.0',
    'jaxlib>=0.4.0',
]

# GPU-specific requirements for the jax convolution backend
gpu_requires = [
    'jax[cuda12_pip]>=0.4.0',
    'jaxlib[cuda12_pip]>=0.4.0',
]

extras_require = {
    'gpu': gpu_requires,
    'dev': ['pytest', 'pytest-cov'],
    'docs': ['sphinx', 'numpydoc', 'sphinx_rtd_theme'],
    'all': gpu_requires + ['pytest', 'pytest-cov'],
}

setup(
    name='xicorr',
    version='1.0.0',
    packages=find_packages(exclude=['tests', 'tests.*', 'docs', 'examples']),
    install_requires=install_requires,
    extras_require=extras_require,
    python_requires='>=3.8',
)
