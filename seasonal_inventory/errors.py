'''
Exceptions raised by the seasonal inventory core.
'''


class ConfigurationError(ValueError):
    """ Catalog data violates a load-time invariant. """


class InvalidActionError(ValueError):
    """ A resupply action fails the feasibility precondition. No state was changed. """
