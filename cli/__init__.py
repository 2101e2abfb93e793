"""Terminal front end for Klondike."""
