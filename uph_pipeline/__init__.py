"""UPH pipeline: standardized Units Per Hour from shop-floor work cycles."""
