# errors.py


class StoreError(Exception):
  """A write against the invoice store did not go through."""


class CheckoutError(Exception):
  """The payment-session backend could not produce a redirect URL."""
