"""
LaunchPad - AI agents for startup market validation
"""
