class TransformConfig:
    """
    Settings shared by the transform engines. Call ``build_and_validate()``
    after editing.
    """

    def __init__(self, **overrides):
        # Multipole transform accuracy and sampling
        self.epsilon = 1e-3
        self.strategy = 'estimate'
        self.min_samples_per_cycle = 2
        self.min_samples_per_decade = 40

        # Convolution backend
        self.backend = 'numpy'

        for name, value in overrides.items():
            if not hasattr(self, name):
                raise ValueError(f"Unknown TransformConfig option: {name}")
            setattr(self, name, value)

    def build_and_validate(self):
        if not 0 < self.epsilon < 1:
            raise ValueError("epsilon must be in the range (0, 1).")
        if self.strategy not in ('estimate', 'measure'):
            raise ValueError("Invalid strategy. Supported strategies: ['estimate', 'measure']")
        if int(self.min_samples_per_cycle) != self.min_samples_per_cycle or self.min_samples_per_cycle < 1:
            raise ValueError("min_samples_per_cycle must be a positive integer.")
        if int(self.min_samples_per_decade) != self.min_samples_per_decade or self.min_samples_per_decade < 1:
            raise ValueError("min_samples_per_decade must be a positive integer.")
        if self.backend not in ('numpy', 'jax'):
            raise ValueError("Invalid backend. Supported backends: ['numpy', 'jax']")
        return self

    def as_dict(self):
        return {
            'epsilon': self.epsilon,
            'strategy': self.strategy,
            'min_samples_per_cycle': self.min_samples_per_cycle,
            'min_samples_per_decade': self.min_samples_per_decade,
            'backend': self.backend,
        }
