"""Referrals app package.

Verified hosts share links carrying ``?ref=<slug>``; clicks are tracked
and a paid booking that came from one credits the host a commission on
the platform's service fee. Credited commissions can be withdrawn.
"""
