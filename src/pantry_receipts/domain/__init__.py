"""Receipt data model plus unit, number and item-name normalization."""
