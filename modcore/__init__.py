"""modcore -- community moderation core for the Great Nigeria platform.

Content filtering, flag and report intake, a prioritised review queue,
user trust scoring, moderator privileges and user penalties.
"""

__version__ = "0.1.0"
