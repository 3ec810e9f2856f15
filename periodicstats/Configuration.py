"""
The periodicstats configuration object
"""


class Configuration(object):
    """
    Package settings backed by validating setters.

    Parameters
    ----------
    setters : `dict`
        Maps each setter function to the default value
        of the setting named after it. Assigning
        ``config.name = value`` stores ``setter(value)``,
        so a setter can reject a value by raising.
    """
    def __init__(self, setters):
        object.__setattr__(self, "_setters", {})
        object.__setattr__(self, "_defaults", {})
        for setter, default in setters.items():
            self._setters[setter.__name__] = setter
            self._defaults[setter.__name__] = default
        object.__setattr__(self, "PROPERTIES", tuple(self._setters))
        self.reset()

    def __setattr__(self, attr, value):
        if attr not in self._setters:
            raise AttributeError(f"Unknown setting {attr!r}. "
                                 f"Choose from {self.PROPERTIES}")
        object.__setattr__(self, attr, self._setters[attr](value))

    def reset(self):
        """Restore every setting to its default"""
        for prop, default in self._defaults.items():
            setattr(self, prop, default)

    def as_dict(self):
        return {prop: getattr(self, prop) for prop in self.PROPERTIES}

    def show(self):
        print(self.__str__())

    def __str__(self):
        return str(self.as_dict())
