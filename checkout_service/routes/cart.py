"""Cart API routes"""

from fastapi import APIRouter, HTTPException, Depends

from ..models.cart import AddToCartRequest, CartResponse
from ..database.carts import cart_db
from ..database.products import product_db
from ..security.auth import AuthenticatedUser, require_user

router = APIRouter(prefix="/api/cart", tags=["Cart"])


@router.get("", response_model=CartResponse)
async def get_cart(user: AuthenticatedUser = Depends(require_user)):
    """Get the caller's cart"""
    return CartResponse(cart=cart_db.get_cart(user.user_id))


@router.post("/items", response_model=CartResponse)
async def add_to_cart(
    request: AddToCartRequest,
    user: AuthenticatedUser = Depends(require_user),
):
    """Add an item to the cart"""
    product = product_db.get_product(request.product_id)
    if not product:
        raise HTTPException(
            status_code=404,
            detail={"code": "product_not_found", "message": "Product not found"},
        )

    if product.stock < request.quantity:
        raise HTTPException(
            status_code=400,
            detail={
                "code": "insufficient_stock",
                "message": f"Insufficient stock. Available: {product.stock}",
            },
        )

    cart = cart_db.add_item(
        user.user_id,
        product_id=product.id,
        quantity=request.quantity,
        variant=request.variant,
    )
    return CartResponse(
        cart=cart,
        message=f"Added {request.quantity}x {product.title} to cart",
    )


@router.delete("/items/{product_id}", response_model=CartResponse)
async def remove_from_cart(
    product_id: str,
    user: AuthenticatedUser = Depends(require_user),
):
    """Remove a product from the cart"""
    cart = cart_db.remove_item(user.user_id, product_id)
    return CartResponse(cart=cart, message="Item removed")


@router.delete("", response_model=CartResponse)
async def clear_cart(user: AuthenticatedUser = Depends(require_user)):
    """Clear all items from cart"""
    cart = cart_db.clear_cart(user.user_id)
    return CartResponse(cart=cart, message="Cart cleared")
