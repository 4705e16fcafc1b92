"""Request authentication against Firebase ID tokens."""
