# shop/forms.py
from django import forms

from .order_table import ORDER_STATUSES, PAYMENT_STATUSES

GENDER_CHOICES = [("Men", "Men"), ("Women", "Women"), ("Unisex", "Unisex"), ("Kids", "Kids")]
CONDITION_CHOICES = [("New", "New"), ("Used", "Used"), ("Refurbished", "Refurbished")]


class CheckoutForm(forms.Form):
    address_id = forms.ChoiceField(label="Deliver to")
    payment_method = forms.ChoiceField(widget=forms.RadioSelect)

    def __init__(self, *args, **kwargs):
        addresses = kwargs.pop("addresses", [])
        methods = kwargs.pop("payment_methods", [])
        super().__init__(*args, **kwargs)
        # Choices come from the backend, not a queryset
        self.fields["address_id"].choices = [
            (a.get("_id"), f"{a.get('fullname', '')}, {a.get('city', '')} {a.get('pincode', '')}".strip(", "))
            for a in addresses
        ]
        self.fields["payment_method"].choices = [(m.get("id"), m.get("name") or m.get("id")) for m in methods]
        if methods:
            self.fields["payment_method"].initial = methods[0].get("id")


class AddressForm(forms.Form):
    fullname = forms.CharField(max_length=100)
    mobile = forms.RegexField(regex=r"^\+?\d{7,15}$", error_messages={"invalid": "Enter a valid mobile number."})
    flat = forms.CharField(max_length=200, label="Flat / House")
    area = forms.CharField(max_length=200)
    city = forms.CharField(max_length=100)
    state = forms.CharField(max_length=100)
    pincode = forms.RegexField(regex=r"^\d{4,10}$", error_messages={"invalid": "Enter a valid pincode."})
    is_default = forms.BooleanField(required=False, label="Use as default address")

    def to_backend(self) -> dict:
        data = dict(self.cleaned_data)
        data["isDefault"] = data.pop("is_default")
        return data

    @classmethod
    def from_backend(cls, address: dict) -> "AddressForm":
        initial = {key: address.get(key, "") for key in cls.base_fields if key != "is_default"}
        initial["is_default"] = bool(address.get("isDefault"))
        return cls(initial=initial)


class ReviewForm(forms.Form):
    order_id = forms.CharField(widget=forms.HiddenInput)
    rating = forms.IntegerField(min_value=1, max_value=5, widget=forms.NumberInput(attrs={"min": 1, "max": 5}))
    comment = forms.CharField(max_length=500, widget=forms.Textarea(attrs={"rows": 3}))


class ReviewEditForm(forms.Form):
    rating = forms.IntegerField(min_value=1, max_value=5)
    comment = forms.CharField(max_length=500, widget=forms.Textarea(attrs={"rows": 3}))


class ProductForm(forms.Form):
    name = forms.CharField(max_length=100)
    description = forms.CharField(widget=forms.Textarea(attrs={"rows": 4}), max_length=1000)
    brand = forms.CharField(max_length=50)
    category = forms.ChoiceField()
    gender = forms.ChoiceField(choices=GENDER_CHOICES, required=False)
    price = forms.DecimalField(min_value=0, decimal_places=2)
    new_price = forms.DecimalField(min_value=0, decimal_places=2, required=False, label="Sale price")
    quantity = forms.IntegerField(min_value=0, initial=0, label="Stock")
    condition = forms.ChoiceField(choices=CONDITION_CHOICES, initial="New")
    images = forms.CharField(
        required=False,
        widget=forms.Textarea(attrs={"rows": 3}),
        help_text="One image URL per line.",
    )
    trending = forms.BooleanField(required=False)

    def __init__(self, *args, **kwargs):
        categories = kwargs.pop("categories", [])
        super().__init__(*args, **kwargs)
        self.fields["category"].choices = [
            (c.get("categoryName") or c.get("name"), c.get("displayName") or c.get("categoryName") or c.get("name"))
            for c in categories
        ]

    def clean(self):
        cleaned = super().clean()
        price, new_price = cleaned.get("price"), cleaned.get("new_price")
        if price is not None and new_price is not None and new_price > price:
            self.add_error("new_price", "Sale price cannot exceed the regular price.")
        return cleaned

    def to_backend(self) -> dict:
        data = self.cleaned_data
        new_price = data.get("new_price")
        return {
            "name": data["name"],
            "description": data["description"],
            "brand": data["brand"],
            "category": data["category"],
            "gender": data.get("gender") or None,
            "price": float(data["price"]),
            "newPrice": float(new_price if new_price is not None else data["price"]),
            "quantity": data["quantity"],
            "condition": data["condition"],
            "images": [line.strip() for line in (data.get("images") or "").splitlines() if line.strip()],
            "trending": data.get("trending", False),
        }

    @classmethod
    def initial_from_backend(cls, product: dict) -> dict:
        return {
            "name": product.get("name"),
            "description": product.get("description"),
            "brand": product.get("brand"),
            "category": product.get("category"),
            "gender": product.get("gender"),
            "price": product.get("price"),
            "new_price": product.get("newPrice"),
            "quantity": product.get("quantity"),
            "condition": product.get("condition") or "New",
            "images": "\n".join(product.get("images") or []),
            "trending": bool(product.get("trending")),
        }


class OrderStatusForm(forms.Form):
    status = forms.ChoiceField(choices=[(s, s.capitalize()) for s in ORDER_STATUSES])
    notes = forms.CharField(required=False, max_length=500)


class PaymentStatusForm(forms.Form):
    payment_status = forms.ChoiceField(choices=[(s, s.capitalize()) for s in PAYMENT_STATUSES])
