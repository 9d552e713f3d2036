from .sampler import ModuleSampler
