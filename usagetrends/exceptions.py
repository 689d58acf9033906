class UsageTrendsError(Exception): ...


class InvalidArgument(UsageTrendsError): ...


class DataUnavailable(UsageTrendsError): ...


class ValidationError(UsageTrendsError): ...


def require(
    condition: bool, message: str, exc: type[UsageTrendsError] = UsageTrendsError
):
    """Raise the given exception if condition is False."""
    if not condition:
        raise exc(message)
