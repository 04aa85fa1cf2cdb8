"""walletstore - encrypted, versioned persistence for cryptocurrency wallets."""

__version__ = "0.1.0"
