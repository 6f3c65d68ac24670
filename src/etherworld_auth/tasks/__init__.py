from .sweeper import OTPSweeper

__all__ = ["OTPSweeper"]
