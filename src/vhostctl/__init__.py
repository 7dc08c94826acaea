"""vhostctl: declare and template nginx vhost configuration fragments."""
