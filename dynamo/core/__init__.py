"""Classification core: grids, families, the escape iterator, rays and covers."""
