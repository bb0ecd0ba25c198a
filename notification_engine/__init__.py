"""Notification and webhook dispatch engine.

The package re-exports nothing; this file keeps ``notification_engine`` a
regular package so it is never resolved as a namespace package.
"""
