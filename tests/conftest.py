from hypothesis import settings

# The fast backend compiles its kernels on first use.
settings.register_profile("densearray", deadline=None, max_examples=50)
settings.load_profile("densearray")
