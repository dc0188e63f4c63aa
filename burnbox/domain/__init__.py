"""
Domain Layer

Accounts and admission, system configuration, and the stored-object
lifecycle. No infrastructure imports live here.
"""
