"""
TailoredAIResume project package.

Settings, root URL configuration and cross-cutting middleware for the
résumé tailoring API.
"""
