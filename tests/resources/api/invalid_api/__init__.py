application = "not a router"
