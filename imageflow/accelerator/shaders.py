"""WGSL compute kernels, one invocation per output pixel.

Input and output bytes travel as one ``u32`` per byte. Both kernels mirror
the host formulas exactly, including integer truncation.
"""

_HEADER = """
struct Params {
    width: u32,
    height: u32,
    channels: u32,
    radius: u32,
};

@group(0) @binding(0) var<storage, read> src: array<u32>;
@group(0) @binding(1) var<storage, read_write> dst: array<u32>;
@group(0) @binding(2) var<uniform> params: Params;
"""

GRAYSCALE = _HEADER + """
@compute @workgroup_size(WORKGROUP_SIZE, WORKGROUP_SIZE, 1)
fn main(@builtin(global_invocation_id) gid: vec3<u32>) {
    if (gid.x >= params.width || gid.y >= params.height) {
        return;
    }
    let i = gid.y * params.width + gid.x;
    let base = i * params.channels;
    if (params.channels < 3u) {
        dst[i] = src[base];
        return;
    }
    let r = f32(src[base]);
    let g = f32(src[base + 1u]);
    let b = f32(src[base + 2u]);
    let gray = 0.299 * r + 0.587 * g + 0.114 * b;
    dst[i] = min(u32(gray), 255u);
}
"""

BOX_BLUR = _HEADER + """
@compute @workgroup_size(WORKGROUP_SIZE, WORKGROUP_SIZE, 1)
fn main(@builtin(global_invocation_id) gid: vec3<u32>) {
    if (gid.x >= params.width || gid.y >= params.height) {
        return;
    }
    let radius = i32(params.radius);
    let x = i32(gid.x);
    let y = i32(gid.y);
    let y0 = max(y - radius, 0);
    let y1 = min(y + radius, i32(params.height) - 1);
    let x0 = max(x - radius, 0);
    let x1 = min(x + radius, i32(params.width) - 1);
    let count = u32((y1 - y0 + 1) * (x1 - x0 + 1));
    let base = (gid.y * params.width + gid.x) * params.channels;
    for (var c: u32 = 0u; c < params.channels; c = c + 1u) {
        var sum: u32 = 0u;
        for (var ny: i32 = y0; ny <= y1; ny = ny + 1) {
            let row = u32(ny) * params.width;
            for (var nx: i32 = x0; nx <= x1; nx = nx + 1) {
                sum = sum + src[(row + u32(nx)) * params.channels + c];
            }
        }
        dst[base + c] = min(sum / count, 255u);
    }
}
"""

KERNELS = {
    'grayscale': GRAYSCALE,
    'boxblur': BOX_BLUR,
}


def load_shader(kernel: str, workgroup_size: int) -> str:
    """Returns the WGSL source of a kernel for the given workgroup edge length."""
    try:
        source = KERNELS[kernel]
    except KeyError:
        raise ValueError(f"Unknown accelerator kernel: {kernel}") from None
    return source.replace('WORKGROUP_SIZE', str(int(workgroup_size)))
