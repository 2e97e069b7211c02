"""Infrastructure Layer: Contains concrete implementations and adapters.

Connects the application to the outside world (the Auth0 API, the file
system, the console) by implementing the interfaces defined in the domain
layer. Also holds the rate-limiting scheduler and retry policy.
"""
