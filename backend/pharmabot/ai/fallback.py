from __future__ import annotations

from dataclasses import dataclass


FALLBACK_SOURCE = "marketplace-fallback"


@dataclass(frozen=True)
class CannedResponseRule:
    name: str
    template: str  # may reference {message}
    any_of: tuple[str, ...] = ()
    all_of: tuple[str, ...] = ()

    def matches(self, lowered: str) -> bool:
        if self.any_of and not any(word in lowered for word in self.any_of):
            return False
        return all(word in lowered for word in self.all_of)

    def render(self, message: str) -> str:
        return self.template.format(message=message)


@dataclass(frozen=True)
class FallbackReply:
    bucket: str
    text: str


_SEARCH = (
    "🔍 **How to Find Medications on Our Platform:**\n\n"
    'To find "{message}" on our pharmacy marketplace:\n'
    "1. Use the search bar at the top of the page\n"
    "2. You'll see results from multiple registered pharmacies\n"
    "3. Compare prices, availability, and delivery options\n"
    "4. Each pharmacy sets their own prices and services\n"
    "5. Select the option that works best for you\n\n"
    "Start by typing what you're looking for in our search feature!"
)

_PRICE = (
    "💰 **Price Comparison on Our Platform:**\n\n"
    "Our marketplace shows you different prices for the same medication from various pharmacies. "
    "To compare:\n"
    "1. Search for the medication\n"
    "2. See prices from Pharmacy A, Pharmacy B, Pharmacy C, etc.\n"
    "3. Check delivery fees (some offer free delivery)\n"
    "4. Consider total cost (price + delivery)\n"
    "5. Choose based on your preference\n\n"
    "Search now to see current prices!"
)

_DELIVERY = (
    "🚚 **Delivery Options:**\n\n"
    "Each pharmacy on our platform sets their own:\n"
    "• Delivery areas and coverage\n"
    "• Delivery fees (varies by pharmacy)\n"
    "• Delivery time (2-4 hours, next day, etc.)\n"
    "• Minimum order amounts\n"
    "• Pickup options\n\n"
    "When you select a medication, you'll see each pharmacy's specific delivery options."
)

_PHARMACY_ONBOARDING = (
    "🏥 **For Pharmacies Wanting to Join:**\n\n"
    "Pharmacies can register on our platform to:\n"
    "• List medications and manage inventory\n"
    "• Set competitive prices\n"
    "• Offer delivery services\n"
    "• Reach more customers online\n"
    "• Manage orders digitally\n\n"
    "Contact our business team for registration details."
)

_PRESCRIPTION = (
    "📋 **Prescription Medications:**\n\n"
    "For prescription drugs on our platform:\n"
    "1. Search for the medication\n"
    "2. Select a pharmacy\n"
    "3. During checkout, you'll be prompted to upload your prescription\n"
    "4. The pharmacy will verify it\n"
    "5. Once approved, your order will be processed\n\n"
    "Prescription requirements vary by medication."
)

_GENERAL = (
    'Thank you for your question about "{message}".\n\n'
    "As a pharmacy marketplace platform, I can help you:\n"
    "🔍 **Find medications** across multiple pharmacies\n"
    "💰 **Compare prices** and delivery options\n"
    "🏥 **Choose between different registered pharmacies**\n"
    "🛒 **Place orders** for delivery or pickup\n\n"
    "For specific medication questions, please use our search feature or consult a licensed pharmacist.\n\n"
    "*Note: I'm a platform assistant, not a medical advisor.*"
)

# Evaluated top to bottom; the first match wins.
RULES: tuple[CannedResponseRule, ...] = (
    CannedResponseRule("search", _SEARCH, any_of=("search", "find", "where")),
    CannedResponseRule("price", _PRICE, any_of=("price", "cost", "how much")),
    CannedResponseRule("delivery", _DELIVERY, any_of=("deliver",)),
    CannedResponseRule("pharmacy_onboarding", _PHARMACY_ONBOARDING, all_of=("pharmacy", "register")),
    CannedResponseRule("prescription", _PRESCRIPTION, any_of=("prescription",)),
)

DEFAULT_RULE = CannedResponseRule("general", _GENERAL)


def match_rule(lowered: str, rules: tuple[CannedResponseRule, ...] = RULES) -> CannedResponseRule:
    for rule in rules:
        if rule.matches(lowered):
            return rule
    return DEFAULT_RULE


def resolve_fallback(message: str, rules: tuple[CannedResponseRule, ...] = RULES) -> FallbackReply:
    text = message or ""
    rule = match_rule(text.lower(), rules)
    return FallbackReply(bucket=rule.name, text=rule.render(text))
