"""Data contracts: DeliveryConfiguration, OrderFacts, Quote."""
