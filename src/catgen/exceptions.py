class CatgenError(Exception):
    pass


class FormatError(CatgenError):
    pass


class NotFoundError(CatgenError):
    pass


class OutOfRangeError(CatgenError, IndexError):
    pass


class NoMoreItemsError(CatgenError):
    pass


class PlatformError(CatgenError):
    pass


class CapacityError(CatgenError):
    pass


class ConfigError(CatgenError):
    pass


class CatalogError(CatgenError):
    pass


class SigningError(CatalogError):
    pass
