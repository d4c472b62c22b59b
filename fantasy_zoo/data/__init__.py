"""Static zoo content (eggs, habitats, events, tunables)"""
