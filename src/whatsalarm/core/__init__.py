"""Core domain package for whatsalarm.

Core contains normalization, matching, message extraction, recency and
deduplication logic without any browser or audio-specific code, keeping the
detection pipeline testable on synthetic DOM trees.
"""
