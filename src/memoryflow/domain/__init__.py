# Domain Package
