"""
Profiles app

Stores each user's master profile, the complete CV document that tailoring
starts from.
"""
