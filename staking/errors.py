class StakingError(Exception):
    pass


class ConfigurationError(StakingError):
    pass


class WindowClosed(StakingError):
    pass


class ZeroAmount(StakingError):
    pass


class NoActiveStake(StakingError):
    pass


class InsufficientRewardFunds(StakingError):
    pass


class TransferFailed(StakingError):
    pass


class ArithmeticOverflow(StakingError):
    pass
