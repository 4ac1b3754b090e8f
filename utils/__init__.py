"""
Utility helpers: OTP policies, validation, delivery, record store
"""
