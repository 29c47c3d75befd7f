"""Time-of-day wallpaper schedules with crossfading transitions"""
