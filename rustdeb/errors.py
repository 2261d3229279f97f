"""Exceptions raised by the detect, select and render pipeline."""


class RustdebError(Exception):
    """Base class for failures the operator has to resolve by hand."""


class UnsupportedCombinationError(RustdebError):
    """No known recipe covers the detected trait set."""

    def __init__(self, traits, reason=""):
        self.traits = tuple(sorted(str(t) for t in traits))
        self.reason = reason
        message = f"No recipe supports the trait combination {{{', '.join(self.traits)}}}"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class MissingParameterError(RustdebError):
    """A recipe placeholder has no value in the parameter mapping."""

    def __init__(self, placeholders, recipe_name=None):
        self.placeholders = tuple(sorted(placeholders))
        self.placeholder = self.placeholders[0] if self.placeholders else None
        self.recipe_name = recipe_name
        where = f" in recipe '{recipe_name}'" if recipe_name else ""
        super().__init__(
            f"Missing value for placeholder {', '.join(self.placeholders)}{where}"
        )


class VendorBundleExistsError(RustdebError):
    """A vendor bundle for this package version was already created."""

    def __init__(self, path):
        self.path = path
        super().__init__(
            f"Vendor bundle {path} already exists; bump the version to create a new one"
        )


class VendoringFailedError(RustdebError):
    """cargo could not produce the vendor directory."""


class InvalidRecipeError(RustdebError):
    """A recipe definition from the configuration is malformed."""


class InvalidParameterError(RustdebError):
    """A parameter has a value the build control files cannot use."""

    def __init__(self, name, value, reason):
        self.name = name
        self.value = value
        super().__init__(f"Invalid value for {name} '{value}': {reason}")
