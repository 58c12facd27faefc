"""
Vend GB: backend de commande (catalogue, checkout, paiements Stripe, back-office).
"""
