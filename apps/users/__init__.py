"""Users app package: contact profiles and host verification."""
