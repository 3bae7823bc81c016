"""
Coinbase Exchange API Integration

Provides modular API clients for the trading pipeline:
- Authentication (HMAC signing with base64 secrets)
- Transport with error classification and retries
- Market data (candles)
- Account balance lookup
- Market order placement
"""
