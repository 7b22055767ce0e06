class HeliusError(Exception):
    pass


class HeliusAuthError(HeliusError):
    pass


class HeliusRateLimitError(HeliusError):
    pass


class HeliusApiError(HeliusError):
    pass
