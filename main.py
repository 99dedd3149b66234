"""
catchlog - offline catch capture and sync

Keeps catches logged without connectivity on the device and pushes them to
the backend once the network comes back.
"""

from catchlog.core.app import main


if __name__ == "__main__":
    main()
